import json

import pytest

from comma.errors import TeamConfigError
from comma.team import TeamManager, detect_team_from_remote

TEAM_CONFIG = {
    "name": "platform",
    "description": "Platform team",
    "templates": {
        "default": {"name": "default", "content": "Team prompt:\n{{CHANGES}}"},
        "short": {"name": "short", "content": "One line for {{CHANGES}}"},
    },
    "default_template": "default",
    "convention_checks": [
        {
            "name": "conventional",
            "description": "Conventional header",
            "regex": "^(feat|fix|docs): ",
            "required": True,
            "error_msg": "Use a conventional header",
        },
        {
            "name": "ticket",
            "regex": "PLAT-\\d+",
            "required": False,
            "error_msg": "Mention a ticket",
        },
    ],
}


@pytest.fixture
def teams(tmp_path):
    (tmp_path / "platform.json").write_text(json.dumps(TEAM_CONFIG))
    return TeamManager(tmp_path)


def test_load_rules(teams):
    rules = teams.load_rules("platform")

    assert [r.name for r in rules] == ["conventional", "ticket"]
    assert rules[0].pattern == "^(feat|fix|docs): "
    assert rules[0].required is True
    assert rules[0].error_message == "Use a conventional header"
    assert rules[1].required is False


def test_load_template(teams):
    assert teams.load_template("platform") == "Team prompt:\n{{CHANGES}}"
    assert teams.load_template("platform", "short") == "One line for {{CHANGES}}"
    assert teams.load_template("platform", "missing") is None


def test_missing_team(teams):
    with pytest.raises(TeamConfigError, match="not found"):
        teams.load_rules("nobody")


def test_invalid_json(tmp_path):
    (tmp_path / "broken.json").write_text("{")

    with pytest.raises(TeamConfigError, match="parse"):
        TeamManager(tmp_path).load_team("broken")


def test_team_name_cannot_escape_directory(teams):
    with pytest.raises(TeamConfigError):
        teams.load_team("../secrets")


def test_import_from_json(tmp_path):
    manager = TeamManager(tmp_path / "teams")

    name = manager.import_from_json(json.dumps(TEAM_CONFIG))

    assert name == "platform"
    saved = json.loads((tmp_path / "teams" / "platform.json").read_text())
    assert saved["convention_checks"][0]["regex"] == "^(feat|fix|docs): "
    assert TeamManager(tmp_path / "teams").load_rules("platform")[1].name == "ticket"


def test_import_requires_name(tmp_path):
    with pytest.raises(TeamConfigError, match="name"):
        TeamManager(tmp_path).import_from_json(json.dumps({"description": "x"}))


@pytest.mark.parametrize("url,expected", [
    ("git@github.com:acme/widgets.git", "acme"),
    ("https://github.com/acme/widgets", "acme"),
    ("https://gitlab.com/platform/api.git", "platform"),
    ("git@bitbucket.org:infra/tools.git", "infra"),
    ("https://example.com/acme/widgets", None),
    (None, None),
])
def test_detect_team_from_remote(url, expected):
    assert detect_team_from_remote(url) == expected


def test_loose_check_values_are_normalized(tmp_path):
    (tmp_path / "loose.json").write_text(json.dumps({
        "name": "loose",
        "convention_checks": [
            {"name": "empty", "regex": None, "required": True},
            {"name": "numeric", "regex": 42, "required": "false"},
            {"name": "strict", "regex": "x", "required": "yes"},
        ],
    }))

    rules = TeamManager(tmp_path).load_rules("loose")

    assert [(r.pattern, r.required) for r in rules] == [("", True), ("42", False), ("x", True)]
