def _invoke(app, *args):
    return app.test_cli_runner().invoke(args=["flags", *args])


def test_seed_is_repeatable(app):
    result = _invoke(app, "seed")
    assert result.exit_code == 0
    assert "beta_dashboard" in result.output
    assert "maintenance_mode" in result.output

    again = _invoke(app, "seed")
    assert again.exit_code == 0
    assert "none" in again.output

    flags = app.extensions["flag_manager"].list_flags("production")
    assert sorted(f.key for f in flags) == ["beta_dashboard", "maintenance_mode"]


def test_create_enable_list_delete(app):
    assert _invoke(app, "create", "dark-mode", "Dark Mode", "-d", "night theme").exit_code == 0

    result = _invoke(app, "enable", "dark-mode", "staging")
    assert result.exit_code == 0
    assert "enabled dark-mode in staging" in result.output

    listing = _invoke(app, "list", "--environment", "staging")
    assert "on  dark-mode\tDark Mode\tnight theme" in listing.output
    assert "off dark-mode" in _invoke(app, "list").output

    assert _invoke(app, "disable", "dark-mode", "staging").exit_code == 0
    assert _invoke(app, "delete", "dark-mode").exit_code == 0
    assert "dark-mode" not in _invoke(app, "list").output


def test_errors_become_click_errors(app):
    result = _invoke(app, "enable", "nope", "local")
    assert result.exit_code != 0
    assert "not_found" in result.output

    result = _invoke(app, "list", "-e", "qa")
    assert result.exit_code != 0
    assert "validation_error" in result.output
