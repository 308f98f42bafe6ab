"""Shared test fixtures."""
import pytest

from fideoctl.config import set_config
from fideoctl.desktop import JsonSettingsStore

INDEX_HTML = """<html><head><script>
window.WEBSOCKET_URL = __WEBSOCKET_URL__
window.WEB_CONTROL_CODE = '__WEB_CONTROL_CODE__'
</script><script src="/__WEB_CONTROL_CODE__/assets/app.js"></script></head></html>
"""


@pytest.fixture
def reset_global_config():
    """Reset the cached global config around a test."""
    import fideoctl.config as config_module

    original = config_module._config
    set_config(None)

    yield

    set_config(original)


@pytest.fixture
def dist_dir(tmp_path):
    """A minimal web bundle with the entry page placeholders."""
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text(INDEX_HTML)
    (dist / "assets" / "app.js").write_text("console.log('app')\n")
    (dist / "assets" / "app.css").write_text("body { color: red; }\n")
    (dist / "assets" / "logo.txt").write_text("logo\n")
    return dist


@pytest.fixture
def settings_store(tmp_path):
    """Web control settings persisted under a temp dir."""
    return JsonSettingsStore(tmp_path / "web_control.json")
