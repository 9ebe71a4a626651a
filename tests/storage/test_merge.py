from services.storage.defaults import default_settings
from services.storage.merge import deep_merge, missing_keys


def test_deep_merge_recurses_into_nested_objects():
    """Leaves present in the override win; missing leaves come from the base."""
    base = {"interface": {"colorScheme": "auto", "notifications": {"enabled": True, "showOnError": True}}}
    override = {"interface": {"notifications": {"enabled": False}}}

    merged = deep_merge(base, override)

    assert merged == {
        "interface": {"colorScheme": "auto", "notifications": {"enabled": False, "showOnError": True}}
    }


def test_deep_merge_replaces_lists_wholesale():
    base = {"models": {"claude-code": [{"value": "opus"}, {"value": "haiku"}]}}
    override = {"models": {"claude-code": [{"value": "sonnet"}]}}

    merged = deep_merge(base, override)

    assert merged["models"]["claude-code"] == [{"value": "sonnet"}]


def test_deep_merge_scalar_overrides_object_and_keeps_unknown_keys():
    """Wrong-typed values and unknown keys pass through untouched."""
    merged = deep_merge({"interface": {"language": "en"}, "serverPort": 3001}, {"interface": "dark", "extra": [1]})

    assert merged == {"interface": "dark", "serverPort": 3001, "extra": [1]}


def test_deep_merge_does_not_share_state_with_inputs():
    base = {"interface": {"notifications": {"enabled": True}}}
    override = {"tags": ["a"]}

    merged = deep_merge(base, override)
    merged["interface"]["notifications"]["enabled"] = False
    merged["tags"].append("b")

    assert base["interface"]["notifications"]["enabled"] is True
    assert override["tags"] == ["a"]


def test_default_settings_returns_independent_copies():
    first = default_settings()
    second = default_settings()

    first["interface"]["notifications"]["enabled"] = False

    assert second["interface"]["notifications"]["enabled"] is True
    assert first["machineId"] != second["machineId"]


def test_default_settings_keeps_supplied_machine_id():
    assert default_settings("abc123")["machineId"] == "abc123"


def test_missing_keys_reports_dotted_paths():
    reference = {"serverPort": 1, "interface": {"language": "en", "notifications": {"enabled": True}}}
    candidate = {"interface": {"notifications": {}}}

    assert missing_keys(reference, candidate) == [
        "serverPort",
        "interface.language",
        "interface.notifications.enabled",
    ]
