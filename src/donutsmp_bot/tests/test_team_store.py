"""Tests for the team roster store."""

from pathlib import Path

import pytest

from donutsmp_bot.errors import RosterStoreError
from donutsmp_bot.services.team_store import (
    DEFAULT_TEAM_NAME,
    Rank,
    Team,
    TeamMember,
    TeamStore,
    country_flag,
)


class TestTeamStore:
    """Tests for TeamStore."""

    def test_missing_file_is_default_team(self, store: TeamStore) -> None:
        """Test a missing file loads as an empty default team."""
        team = store.load()
        assert team.name == DEFAULT_TEAM_NAME
        assert team.members == []

    def test_unreadable_file_is_default_team(self, tmp_path: Path) -> None:
        """Test a corrupt file loads as an empty default team."""
        path = tmp_path / "team.json"
        path.write_text("{not json", encoding="utf-8")
        assert TeamStore(path).load() == Team()

    def test_non_utf8_file_is_default_team(self, tmp_path: Path) -> None:
        """Test a file with invalid UTF-8 loads as an empty default team."""
        path = tmp_path / "team.json"
        path.write_bytes(b'{"name": "\xff\xfe", "members": []}')
        assert TeamStore(path).load() == Team()

    def test_non_utf8_file_can_be_overwritten(self, tmp_path: Path) -> None:
        """Test a roster command replaces an undecodable file."""
        path = tmp_path / "team.json"
        path.write_bytes(b"\xff")
        store = TeamStore(path)
        store.set_name("Donut Squad")
        assert store.load().name == "Donut Squad"

    def test_set_name_persists(self, store: TeamStore) -> None:
        """Test the name survives a reload."""
        store.set_name("  Donut Squad ")
        assert store.load().name == "Donut Squad"

    def test_upsert_adds_then_replaces(self, store: TeamStore) -> None:
        """Test the same IGN in any case replaces the existing member."""
        _, updated = store.upsert_member(TeamMember(ign="Notch", skill="PvP"))
        assert updated is False

        team, updated = store.upsert_member(
            TeamMember(ign="notch", skill="Builder", rank=Rank.ADMIN)
        )
        assert updated is True
        assert len(team.members) == 1
        assert store.load().members[0].skill == "Builder"

    def test_remove_member(self, store: TeamStore) -> None:
        """Test removal matches IGN case-insensitively."""
        store.upsert_member(TeamMember(ign="Notch"))
        store.upsert_member(TeamMember(ign="jeb_"))

        team, removed = store.remove_member("NOTCH")
        assert removed is True
        assert [m.ign for m in team.members] == ["jeb_"]

        _, removed = store.remove_member("ghost")
        assert removed is False

    def test_write_failure_raises(self, tmp_path: Path) -> None:
        """Test an unwritable path raises RosterStoreError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = TeamStore(blocker / "team.json")

        with pytest.raises(RosterStoreError) as exc_info:
            store.set_name("X")
        assert "Failed to save" in exc_info.value.user_message


class TestTeam:
    """Tests for roster ordering and ranks."""

    def test_sorted_by_rank_then_ign(self) -> None:
        """Test owners come first and names sort case-insensitively."""
        team = Team(
            members=[
                TeamMember(ign="zed"),
                TeamMember(ign="Bob", rank=Rank.ADMIN),
                TeamMember(ign="alice"),
                TeamMember(ign="Owner1", rank=Rank.OWNER),
            ]
        )
        assert [m.ign for m in team.sorted_members()] == [
            "Owner1",
            "Bob",
            "alice",
            "zed",
        ]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("owner", Rank.OWNER),
            ("ADMIN", Rank.ADMIN),
            ("member", Rank.MEMBER),
            ("captain", Rank.MEMBER),
            (None, Rank.MEMBER),
        ],
    )
    def test_rank_parse(self, value: str | None, expected: Rank) -> None:
        """Test unknown ranks fall back to Member."""
        assert Rank.parse(value) is expected


class TestCountryFlag:
    """Tests for flag lookup."""

    @pytest.mark.parametrize(
        ("country", "expected"),
        [("BE", "🇧🇪"), ("be", "🇧🇪"), ("Belgium", "🇧🇪"), ("usa", "🇺🇸")],
    )
    def test_known(self, country: str, expected: str) -> None:
        """Test codes and names resolve to flags."""
        assert country_flag(country) == expected

    @pytest.mark.parametrize("country", ["", "Atlantis", "B1"])
    def test_unknown(self, country: str) -> None:
        """Test unknown countries have no flag."""
        assert country_flag(country) == ""
