"""Unit tests for the repositories against an in-memory Redis."""

import json
from datetime import datetime, timezone

import pytest

from errors import ValidationError
from repositories.link_repository import link_key, owner_key
from repositories.reputation_repository import report_limit_key, reputation_key
from repositories.state_repository import preferences_key, state_key
from repositories.stats_repository import bucket_key, visitor_key
from repositories.workspace_repository import workspace_key
from schemas.models.analytics import DailyBucket
from schemas.models.link import LinkEntity, LinkKind
from schemas.models.safety import ReputationEntry

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entity(**overrides) -> LinkEntity:
    base = dict(
        kind=LinkKind.REDIRECT,
        url="https://example.com",
        created_by="owner-1",
        created_at=CREATED,
    )
    base.update(overrides)
    return LinkEntity(**base)


# ── Key layout ────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "key, expected",
    [
        (link_key("Ab3dE9"), "link:Ab3dE9"),
        (owner_key("42"), "user:42"),
        (bucket_key("Ab3dE9", "20240131"), "stats:Ab3dE9:20240131"),
        (visitor_key("Ab3dE9", "f00d", "20240131"), "visitor:Ab3dE9:f00d:20240131"),
        (workspace_key("team-1"), "workspace:team-1"),
        (reputation_key("evil.test"), "blocklist:evil.test"),
        (report_limit_key("42", "20240131"), "ratelimit:report:42:20240131"),
        (state_key("chat-7"), "state:chat-7"),
        (preferences_key("42"), "pref:42"),
    ],
)
def test_key_layout(key, expected):
    assert key == expected


# ── LinkRepository ────────────────────────────────────────────────────────────


class TestLinkRepository:
    async def test_save_and_get(self, link_repo):
        await link_repo.save("Ab3dE9", _entity(max_clicks=3))
        loaded = await link_repo.get("Ab3dE9")
        assert loaded.url == "https://example.com"
        assert loaded.max_clicks == 3

    async def test_stored_with_camel_case_keys(self, link_repo, redis):
        await link_repo.save("Ab3dE9", _entity(max_clicks=3))
        raw = json.loads(await redis.get("link:Ab3dE9"))
        assert raw["type"] == "redirect"
        assert raw["createdBy"] == "owner-1"
        assert raw["maxClicks"] == 3
        assert raw["currentClicks"] == 0

    async def test_missing_is_none(self, link_repo):
        assert await link_repo.get("nope42") is None

    async def test_legacy_key_upgraded_on_first_read(self, link_repo, redis):
        await redis.set("old123", "https://legacy.example")

        entity = await link_repo.get("old123")

        assert entity.kind is LinkKind.REDIRECT
        assert entity.url == "https://legacy.example"
        assert entity.created_by is None
        upgraded = json.loads(await redis.get("link:old123"))
        assert upgraded["url"] == "https://legacy.example"
        # legacy key is left in place
        assert await redis.get("old123") == "https://legacy.example"

    async def test_new_key_wins_over_legacy(self, link_repo, redis):
        await redis.set("both12", "https://legacy.example")
        await link_repo.save("both12", _entity(url="https://new.example"))
        assert (await link_repo.get("both12")).url == "https://new.example"

    async def test_exists_checks_both_layouts(self, link_repo, redis):
        await redis.set("old123", "https://legacy.example")
        await link_repo.save("new123", _entity())
        assert await link_repo.exists("old123") is True
        assert await link_repo.exists("new123") is True
        assert await link_repo.exists("none12") is False

    @pytest.mark.parametrize(
        "key, value",
        [
            ("user:alice", json.dumps({"links": ["Ab3dE9"]})),
            ("stats:Ab3dE9:20240131", json.dumps({"clicks": 4})),
            ("visitor:Ab3dE9:f00d:20240131", "1"),
        ],
        ids=["owner_index", "stats_bucket", "visitor_marker"],
    )
    async def test_other_records_are_not_legacy_links(self, link_repo, redis, key, value):
        await redis.set(key, value)

        assert await link_repo.get(key) is None
        assert await link_repo.exists(key) is False
        assert await redis.get(link_key(key)) is None

    async def test_corrupt_entity_reads_as_missing(self, link_repo, redis):
        await redis.set("link:bad123", json.dumps({"type": "redirect"}))
        assert await link_repo.get("bad123") is None

    async def test_delete(self, link_repo):
        await link_repo.save("Ab3dE9", _entity())
        await link_repo.delete("Ab3dE9")
        assert await link_repo.get("Ab3dE9") is None

    async def test_owner_index(self, link_repo, redis):
        await link_repo.add_owner_code("42", "aaa111")
        await link_repo.add_owner_code("42", "bbb222")
        await link_repo.add_owner_code("42", "aaa111")
        assert await link_repo.list_owner_codes("42") == ["aaa111", "bbb222"]
        assert json.loads(await redis.get("user:42")) == {"links": ["aaa111", "bbb222"]}

        await link_repo.remove_owner_code("42", "aaa111")
        assert await link_repo.list_owner_codes("42") == ["bbb222"]

    async def test_owner_index_empty(self, link_repo):
        assert await link_repo.list_owner_codes("nobody") == []


# ── StatsRepository ───────────────────────────────────────────────────────────


class TestStatsRepository:
    async def test_missing_bucket_is_zero(self, stats_repo):
        bucket = await stats_repo.get_bucket("Ab3dE9", "20240131")
        assert bucket == DailyBucket()

    async def test_save_and_get(self, stats_repo, redis):
        bucket = DailyBucket(clicks=3, uniques=2, qr_scans=1, countries={"DE": 3})
        await stats_repo.save_bucket("Ab3dE9", "20240131", bucket)
        assert await stats_repo.get_bucket("Ab3dE9", "20240131") == bucket
        raw = json.loads(await redis.get("stats:Ab3dE9:20240131"))
        assert raw["qrScans"] == 1

    async def test_visitor_marker_has_24h_ttl(self, stats_repo, redis):
        assert await stats_repo.has_visitor("Ab3dE9", "f00d", "20240131") is False
        await stats_repo.mark_visitor("Ab3dE9", "f00d", "20240131")
        assert await stats_repo.has_visitor("Ab3dE9", "f00d", "20240131") is True
        ttl = await redis.ttl("visitor:Ab3dE9:f00d:20240131")
        assert 86000 < ttl <= 86400


# ── ReputationRepository ──────────────────────────────────────────────────────


class TestReputationRepository:
    async def test_entry_round_trip(self, reputation_repo, redis):
        entry = ReputationEntry(reported_by=["a"], report_count=1, reported_at=CREATED)
        await reputation_repo.save_entry("evil.test", entry)
        assert await reputation_repo.get_entry("evil.test") == entry
        raw = json.loads(await redis.get("blocklist:evil.test"))
        assert raw["reportedBy"] == ["a"]
        assert raw["reportCount"] == 1

    async def test_missing_entry(self, reputation_repo):
        assert await reputation_repo.get_entry("clean.test") is None

    async def test_report_counter(self, reputation_repo, redis):
        assert await reputation_repo.get_report_count("42", "20240131") == 0
        await reputation_repo.set_report_count("42", "20240131", 4)
        assert await reputation_repo.get_report_count("42", "20240131") == 4
        assert 0 < await redis.ttl("ratelimit:report:42:20240131") <= 86400

    async def test_garbage_counter_reads_zero(self, reputation_repo, redis):
        await redis.set("ratelimit:report:42:20240131", "lots")
        assert await reputation_repo.get_report_count("42", "20240131") == 0


# ── StateRepository ───────────────────────────────────────────────────────────


class TestStateRepository:
    async def test_state_round_trip_with_ttl(self, state_repo, redis):
        await state_repo.set_state("chat-7", {"step": "awaiting_url", "code": "Ab3dE9"})
        assert await state_repo.get_state("chat-7") == {
            "step": "awaiting_url",
            "code": "Ab3dE9",
        }
        assert 0 < await redis.ttl("state:chat-7") <= 3600

    async def test_clear_state(self, state_repo):
        await state_repo.set_state("chat-7", {"step": "x"})
        await state_repo.clear_state("chat-7")
        assert await state_repo.get_state("chat-7") is None

    async def test_preferences_default(self, state_repo):
        prefs = await state_repo.get_preferences("42")
        assert prefs.style == "square"
        assert prefs.color_scheme == "classic"

    async def test_preferences_saved(self, state_repo, redis):
        await state_repo.set_preferences("42", "dots", "teal")
        prefs = await state_repo.get_preferences("42")
        assert (prefs.style, prefs.color_scheme) == ("dots", "teal")
        assert json.loads(await redis.get("pref:42")) == {
            "style": "dots",
            "colorScheme": "teal",
        }

    @pytest.mark.parametrize(
        "style, scheme, field",
        [("hexagon", "classic", "style"), ("square", "neon", "color_scheme")],
    )
    async def test_unknown_preferences_rejected(self, state_repo, style, scheme, field):
        with pytest.raises(ValidationError) as exc:
            await state_repo.set_preferences("42", style, scheme)
        assert exc.value.field == field

    async def test_unreadable_preferences_fall_back(self, state_repo, redis):
        await redis.set("pref:42", "not json")
        assert (await state_repo.get_preferences("42")).style == "square"


class TestWorkspaceRepository:
    async def test_first_member_creates_workspace(self, workspace_repo, redis):
        workspace = await workspace_repo.add_member("team-1", "42", name="Growth")

        assert workspace.name == "Growth"
        assert workspace.members == ["42"]
        stored = json.loads(await redis.get(workspace_key("team-1")))
        assert stored == {"name": "Growth", "admins": [], "members": ["42"], "links": []}

    async def test_default_name(self, workspace_repo):
        workspace = await workspace_repo.add_member("team-1", "42")
        assert workspace.name == "Workspace"

    async def test_members_are_not_repeated(self, workspace_repo):
        await workspace_repo.add_member("team-1", "42")
        await workspace_repo.add_member("team-1", "43", name="Ignored")
        workspace = await workspace_repo.add_member("team-1", "42")
        assert workspace.members == ["42", "43"]
        assert workspace.name == "Workspace"

    async def test_add_link(self, workspace_repo):
        await workspace_repo.add_member("team-1", "42")
        assert await workspace_repo.add_link("team-1", "Ab3dE9") is True
        assert await workspace_repo.add_link("team-1", "Ab3dE9") is True
        assert (await workspace_repo.get("team-1")).links == ["Ab3dE9"]

    async def test_add_link_to_missing_workspace(self, workspace_repo, redis):
        assert await workspace_repo.add_link("team-1", "Ab3dE9") is False
        assert await redis.get(workspace_key("team-1")) is None

    async def test_corrupt_workspace_reads_as_missing(self, workspace_repo, redis):
        await redis.set(workspace_key("team-1"), json.dumps({"members": "42"}))
        assert await workspace_repo.get("team-1") is None
