import textwrap

import pytest

from relaywatch.managers.config_manager import PACKAGE_CONFIG_DIR, ConfigManager


def _write(path, text):
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


@pytest.fixture
def defaults(tmp_path):
    return _write(tmp_path / "factory_defaults.yaml", """
        bridge:
          poll_interval: 9.0
    """)


def test_packaged_config_loads():
    config = ConfigManager().load()

    assert (PACKAGE_CONFIG_DIR / "relaywatch.yaml").exists()
    assert config.bridge.channel == "ipc-update"
    assert config.node.listen == ["/ip4/127.0.0.1/tcp/4001"]


def test_main_file_is_used(tmp_path, defaults):
    main = _write(tmp_path / "relaywatch.yaml", """
        bridge:
          poll_interval: 1.5
        server:
          enabled: false
    """)

    config = ConfigManager(main, defaults).load()

    assert config.bridge.poll_interval == 1.5
    assert config.server.enabled is False


def test_includes_are_merged_and_main_file_wins(tmp_path, defaults):
    _write(tmp_path / "node.yaml", """
        node:
          listen:
            - /ip4/0.0.0.0/tcp/4100
    """)
    _write(tmp_path / "bridge.yaml", """
        bridge:
          poll_interval: 2.0
    """)
    main = _write(tmp_path / "relaywatch.yaml", """
        include:
          - node.yaml
          - bridge.yaml
        bridge:
          poll_interval: 0.25
    """)

    manager = ConfigManager(main, defaults)
    config = manager.load()

    assert config.node.listen == ["/ip4/0.0.0.0/tcp/4100"]
    assert config.bridge.poll_interval == 0.25
    assert "include" not in manager.data


def test_missing_file_falls_back_to_factory_defaults(tmp_path, defaults):
    config = ConfigManager(tmp_path / "absent.yaml", defaults).load()

    assert config.bridge.poll_interval == 9.0


def test_invalid_file_falls_back_to_factory_defaults(tmp_path, defaults, capsys):
    main = _write(tmp_path / "relaywatch.yaml", """
        bridge:
          poll_interval: -3
    """)

    config = ConfigManager(main, defaults).load()

    assert config.bridge.poll_interval == 9.0
    assert "Failed to load config" in capsys.readouterr().err


def test_malformed_yaml_falls_back(tmp_path, defaults):
    main = _write(tmp_path / "relaywatch.yaml", "bridge: [unclosed\n")

    assert ConfigManager(main, defaults).load().bridge.poll_interval == 9.0


def test_missing_include_falls_back(tmp_path, defaults):
    main = _write(tmp_path / "relaywatch.yaml", """
        include:
          - nowhere.yaml
    """)

    assert ConfigManager(main, defaults).load().bridge.poll_interval == 9.0


def test_unusable_defaults_give_builtin_config(tmp_path):
    config = ConfigManager(tmp_path / "absent.yaml", tmp_path / "also_absent.yaml").load()

    assert config.bridge.poll_interval == 4.0
    assert config.shutdown.total_timeout == 15.0
