import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from edifact_config import EdifactConfig

logger = logging.getLogger(__name__)

PARTNERS_DIR = "partners"


class ProfileManager:
    """
    Resolves named EdifactConfig profiles stored as JSON files.
    A file under partners/<partner_id>/ overrides the base file of the same name.
    Profiles are read on first use and cached per (partner, name).
    """

    def __init__(self, profile_base_path: str = "profiles"):
        self.profile_base_path = Path(profile_base_path)
        self._cache: Dict[Tuple[Optional[str], str], EdifactConfig] = {}
        if not self.profile_base_path.is_dir():
            logger.warning(f"Profile directory does not exist: {self.profile_base_path}")

    def _candidates(self, profile_name: str, partner_id: Optional[str]) -> List[Path]:
        paths = [self.profile_base_path / profile_name]
        if partner_id:
            paths.insert(0, self.profile_base_path / PARTNERS_DIR / partner_id / profile_name)
        return paths

    def _read(self, path: Path) -> Optional[EdifactConfig]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return EdifactConfig.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Ignoring unreadable profile {path}: {e}")
            return None

    def get_profile(self, profile_name: str, partner_id: Optional[str] = None) -> Optional[EdifactConfig]:
        """
        Look up a profile, preferring the partner override when one is readable.

        Returns:
            EdifactConfig or None if no readable file exists
        """
        key = (partner_id, profile_name)
        if key in self._cache:
            return self._cache[key]

        for path in self._candidates(profile_name, partner_id):
            if not path.is_file():
                continue
            profile = self._read(path)
            if profile is not None:
                logger.info(f"Using profile {path.relative_to(self.profile_base_path)} for partner {partner_id or '-'}")
                self._cache[key] = profile
                return profile

        logger.error(f"Profile not found: {profile_name} (partner {partner_id or '-'})")
        return None
