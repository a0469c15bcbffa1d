import pytest
import json
from pathlib import Path
from profile_manager import ProfileManager

pytestmark = pytest.mark.unit

@pytest.fixture
def profile_dir(tmp_path: Path) -> Path:
    """Create a temporary directory with base and partner-specific profiles."""
    (tmp_path / "orders_d96a.json").write_text(json.dumps({"sender_id": "ACME", "receiver_id": "HUB"}))
    (tmp_path / "malformed.json").write_text("{'invalid_json':}")
    (tmp_path / "unknown_field.json").write_text(json.dumps({"colour": "blue"}))

    partner_dir = tmp_path / "partners" / "partner-a"
    partner_dir.mkdir(parents=True)
    (partner_dir / "orders_d96a.json").write_text(json.dumps({"sender_id": "ACME", "receiver_id": "PARTNERA", "charset": "UNOA"}))
    (partner_dir / "partner_only.json").write_text(json.dumps({"receiver_id": "ONLYA"}))

    broken_dir = tmp_path / "partners" / "partner-broken"
    broken_dir.mkdir(parents=True)
    (broken_dir / "orders_d96a.json").write_text("not json")

    return tmp_path

def test_base_profile_without_partner(profile_dir: Path):
    profile = ProfileManager(str(profile_dir)).get_profile("orders_d96a.json")
    assert profile is not None
    assert profile.receiver_id == "HUB"
    assert profile.charset == "UNOC"

def test_partner_override_wins(profile_dir: Path):
    profile = ProfileManager(str(profile_dir)).get_profile("orders_d96a.json", "partner-a")
    assert profile.receiver_id == "PARTNERA"
    assert profile.decimal_mark == ","

def test_partner_without_override_falls_back_to_base(profile_dir: Path):
    profile = ProfileManager(str(profile_dir)).get_profile("orders_d96a.json", "partner-b")
    assert profile.receiver_id == "HUB"

def test_unreadable_override_falls_back_to_base(profile_dir: Path):
    profile = ProfileManager(str(profile_dir)).get_profile("orders_d96a.json", "partner-broken")
    assert profile.receiver_id == "HUB"

def test_partner_only_profile(profile_dir: Path):
    manager = ProfileManager(str(profile_dir))
    assert manager.get_profile("partner_only.json", "partner-a").receiver_id == "ONLYA"
    assert manager.get_profile("partner_only.json", "partner-b") is None
    assert manager.get_profile("partner_only.json") is None

@pytest.mark.parametrize("name", ["malformed.json", "unknown_field.json", "non_existent_profile.json"])
def test_unusable_profiles_resolve_to_none(profile_dir: Path, name: str):
    assert ProfileManager(str(profile_dir)).get_profile(name, "partner-a") is None

def test_profiles_are_cached_per_partner(profile_dir: Path):
    manager = ProfileManager(str(profile_dir))
    first = manager.get_profile("orders_d96a.json", "partner-a")
    (profile_dir / "partners" / "partner-a" / "orders_d96a.json").write_text(json.dumps({"receiver_id": "CHANGED"}))
    assert manager.get_profile("orders_d96a.json", "partner-a") is first
    assert manager.get_profile("orders_d96a.json").receiver_id == "HUB"

def test_missing_profile_directory(tmp_path: Path):
    manager = ProfileManager(str(tmp_path / "does-not-exist"))
    assert manager.get_profile("orders_d96a.json") is None
