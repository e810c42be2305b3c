"""Unit tests for the member file codec."""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path

import pytest

from member_store import MemberStore
from models import PTMember, RegularMember
from record_codec import (
    HEADER,
    ParseError,
    RecordIOError,
    ensure_file,
    load,
    parse_line,
    save,
    to_line,
)


@pytest.fixture
def members_path(tmp_path: Path) -> Path:
    return tmp_path / "members.csv"


def _store() -> MemberStore:
    s = MemberStore()
    s.add(
        RegularMember(
            id="R1", name="Ana Silva", age=30, base_fee=Decimal("99.999"),
            performance_rating=45, achieved_goal=True,
        )
    )
    s.add(
        PTMember(
            id="P1", name="Ben Ito", age=52, base_fee=Decimal("120"),
            trainer_fee=Decimal("35.5"), performance_rating=91,
        )
    )
    return s


class TestToLine:
    def test_regular(self):
        m = RegularMember(id="R1", name="Ana", age=30, base_fee=Decimal("100"))
        assert to_line(m) == "REGULAR,R1,Ana,30,100.00,0,false"

    def test_pt(self):
        m = PTMember(
            id="P1", name="Ben", age=40, base_fee=Decimal("100"),
            trainer_fee=Decimal("50.125"), achieved_goal=True, performance_rating=80,
        )
        assert to_line(m) == "PT,P1,Ben,40,100.00,80,true,50.13"

    def test_commas_become_semicolons(self):
        m = RegularMember(id="R,1", name="Silva, Ana", age=30, base_fee=1)
        assert to_line(m) == "REGULAR,R;1,Silva; Ana,30,1.00,0,false"


class TestParseLine:
    def test_regular(self):
        m = parse_line("REGULAR, R1 ,Ana,30,100.5,45,TRUE")
        assert isinstance(m, RegularMember)
        assert m.id == "R1"
        assert m.base_fee == Decimal("100.5")
        assert m.achieved_goal is True

    def test_pt_tag_case_insensitive(self):
        m = parse_line("pt,P1,Ben,40,100,80,false,50")
        assert isinstance(m, PTMember)
        assert m.trainer_fee == Decimal("50")

    def test_unknown_goal_text_is_false(self):
        assert parse_line("REGULAR,R1,Ana,30,100,45,yes").achieved_goal is False

    def test_unknown_tag_reads_as_regular(self):
        assert isinstance(parse_line("BASIC,R1,Ana,30,100,45,false"), RegularMember)

    def test_too_few_fields(self):
        with pytest.raises(ParseError, match="at least 6 fields"):
            parse_line("REGULAR,R1,Ana,30,100,45")

    def test_pt_missing_trainer_fee(self):
        with pytest.raises(ParseError, match="at least 7 fields"):
            parse_line("PT,P1,Ben,40,100,80,false")

    @pytest.mark.parametrize(
        "line",
        [
            "REGULAR,R1,Ana,thirty,100,45,false",
            "REGULAR,R1,Ana,30,abc,45,false",
            "REGULAR,R1,Ana,30,100,4.5,false",
            "PT,P1,Ben,40,100,80,false,lots",
        ],
    )
    def test_bad_numbers(self, line):
        with pytest.raises(ParseError):
            parse_line(line)

    @pytest.mark.parametrize(
        "line",
        [
            "REGULAR,R1,Ana,12,100,45,false",
            "REGULAR,R1,Ana,30,-1,45,false",
            "REGULAR,R1,Ana,30,100,101,false",
            "REGULAR,,Ana,30,100,45,false",
            "PT,P1,Ben,40,100,80,false,-3",
        ],
    )
    def test_invariant_violations(self, line):
        with pytest.raises(ParseError, match="invalid member"):
            parse_line(line)


class TestSave:
    def test_writes_header_and_lines(self, members_path: Path):
        assert save(_store(), members_path) == 2
        lines = members_path.read_text(encoding="utf-8").splitlines()
        assert lines == [
            HEADER,
            "REGULAR,R1,Ana Silva,30,100.00,45,true",
            "PT,P1,Ben Ito,52,120.00,91,false,35.50",
        ]

    def test_creates_parent_dirs(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "members.csv"
        save(_store(), path)
        assert path.exists()
        assert not (path.parent / "members.csv.tmp").exists()

    def test_unwritable_target(self, tmp_path: Path):
        target = tmp_path / "is_a_dir"
        target.mkdir()
        with pytest.raises(RecordIOError):
            save(_store(), target)
        assert not (tmp_path / "is_a_dir.tmp").exists()

    def test_large_fee_is_written_in_full(self, members_path: Path):
        s = MemberStore()
        s.add(RegularMember(id="R1", name="Ana", age=30, base_fee=Decimal("1e30")))
        s.add(
            PTMember(
                id="P1", name="Ben", age=40, base_fee=Decimal("1"),
                trainer_fee=Decimal("123456789012345678901234567890.125"),
            )
        )
        save(s, members_path)
        lines = members_path.read_text(encoding="utf-8").splitlines()
        assert lines[1] == "REGULAR,R1,Ana,30,1000000000000000000000000000000.00,0,false"
        assert lines[2].endswith(",123456789012345678901234567890.13")


class TestLoad:
    def test_round_trip(self, members_path: Path):
        original = _store()
        save(original, members_path)
        loaded = MemberStore()
        result = load(loaded, members_path)

        assert result.loaded == 2
        assert result.errors == []
        assert [m.id for m in loaded] == ["R1", "P1"]
        r1, p1 = loaded.list_all()
        assert r1.base_fee == Decimal("100.00")
        assert (r1.name, r1.age, r1.performance_rating, r1.achieved_goal) == ("Ana Silva", 30, 45, True)
        assert p1.trainer_fee == Decimal("35.50")
        assert (p1.name, p1.age, p1.performance_rating, p1.achieved_goal) == ("Ben Ito", 52, 91, False)

    def test_missing_file_is_created(self, members_path: Path):
        store = _store()
        result = load(store, members_path)
        assert result.created is True
        assert store.count() == 0
        assert members_path.read_text(encoding="utf-8") == HEADER + "\n"

    def test_replaces_existing_contents(self, members_path: Path):
        members_path.write_text(HEADER + "\nREGULAR,X1,Xena,20,10,5,false\n", encoding="utf-8")
        store = _store()
        load(store, members_path)
        assert [m.id for m in store] == ["X1"]

    def test_header_skipped_regardless_of_content(self, members_path: Path):
        members_path.write_text(
            "REGULAR,H1,Header Row,30,10,5,false\nREGULAR,R1,Ana,30,10,5,false\n",
            encoding="utf-8",
        )
        store = MemberStore()
        load(store, members_path)
        assert [m.id for m in store] == ["R1"]

    def test_blank_lines_skipped(self, members_path: Path):
        members_path.write_text(
            "\n" + HEADER + "\n\nREGULAR,R1,Ana,30,10,5,false\n   \n",
            encoding="utf-8",
        )
        store = MemberStore()
        result = load(store, members_path)
        assert result.loaded == 1
        assert result.errors == []

    def test_bad_line_is_skipped_and_reported(self, members_path: Path, caplog):
        members_path.write_text(
            HEADER + "\nREGULAR,R1,Ana,30,10,5,false\nPT,P1,Ben,40\n",
            encoding="utf-8",
        )
        store = MemberStore()
        with caplog.at_level(logging.WARNING):
            result = load(store, members_path)
        assert store.count() == 1
        assert result.loaded == 1
        assert len(result.errors) == 1
        assert result.errors[0].line_number == 3
        assert result.errors[0].line == "PT,P1,Ben,40"
        assert "line 3" in caplog.text

    def test_duplicate_ids_in_file(self, members_path: Path):
        members_path.write_text(
            HEADER + "\nREGULAR,R1,Ana,30,10,5,false\nREGULAR,r1,Other,30,10,5,false\n",
            encoding="utf-8",
        )
        store = MemberStore()
        result = load(store, members_path)
        assert [m.name for m in store] == ["Ana"]
        assert "duplicate" in str(result.errors[0])

    def test_file_order_preserved(self, members_path: Path):
        rows = [f"REGULAR,M{i},Name {i},30,10,{i},false" for i in range(5)]
        members_path.write_text("\n".join([HEADER, *rows]) + "\n", encoding="utf-8")
        store = MemberStore()
        load(store, members_path)
        assert [m.id for m in store] == [f"M{i}" for i in range(5)]

    def test_unreadable_file_leaves_store_untouched(self, tmp_path: Path):
        target = tmp_path / "members_dir"
        target.mkdir()
        store = _store()
        with pytest.raises(RecordIOError):
            load(store, target)
        assert store.count() == 2

    def test_record_io_error_is_os_error(self, tmp_path: Path):
        target = tmp_path / "members_dir"
        target.mkdir()
        with pytest.raises(OSError):
            load(MemberStore(), target)

    def test_huge_fee_line_loads_and_saves_again(self, members_path: Path):
        members_path.write_text(
            HEADER + "\nREGULAR,R1,Ana,30,1e30,5,false\nPT,P1,Ben,40,2.5E+27,95,true,1e26\n",
            encoding="utf-8",
        )
        store = MemberStore()
        result = load(store, members_path)
        assert result.loaded == 2
        assert result.errors == []

        assert save(store, members_path) == 2
        reloaded = MemberStore()
        load(reloaded, members_path)
        assert reloaded.get_by_id("R1").base_fee == Decimal("1e30")
        assert reloaded.get_by_id("P1").base_fee == Decimal("2.5E+27")
        assert reloaded.get_by_id("P1").trainer_fee == Decimal("1e26")

    @pytest.mark.parametrize("text", ["NaN", "sNaN", "Infinity", "-Infinity"])
    def test_non_finite_fee_is_parse_error(self, members_path: Path, text: str):
        members_path.write_text(
            HEADER + f"\nREGULAR,R1,Ana,30,{text},5,false\nREGULAR,R2,Bo,30,10,5,false\n",
            encoding="utf-8",
        )
        store = MemberStore()
        result = load(store, members_path)
        assert [m.id for m in store] == ["R2"]
        assert len(result.errors) == 1

class TestEnsureFile:
    def test_creates_once(self, members_path: Path):
        assert ensure_file(members_path) is True
        members_path.write_text(HEADER + "\nREGULAR,R1,Ana,30,10,5,false\n", encoding="utf-8")
        assert ensure_file(members_path) is False
        assert "R1" in members_path.read_text(encoding="utf-8")
