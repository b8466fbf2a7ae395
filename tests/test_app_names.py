import pytest

from peep.utils.app_names import IDLE_LABEL, get_friendly_app_name


@pytest.mark.parametrize("package,label", [
    ("com.spotify.music", "Listening to Spotify 🎵"),
    ("com.zhiliaoapp.musically", "Watching TikTok 🎵"),
    ("com.google.android.dialer", "On a Call 📞"),
])
def test_known_packages(package, label):
    assert get_friendly_app_name(package) == label


def test_unknown_package_uses_last_segment():
    assert get_friendly_app_name("org.example.weatherapp") == "Using weatherapp 📱"


def test_empty_package_is_idle():
    assert get_friendly_app_name(None) == IDLE_LABEL
    assert get_friendly_app_name("") == IDLE_LABEL
