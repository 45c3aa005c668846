"""Bank identification from statement header text."""

import logging
from typing import Dict, Optional

from ..models.core import BankProfile


logger = logging.getLogger(__name__)


GENERIC_PROFILE_KEY = 'generic'

# Registry order is detection order; the generic entry is only a fallback
BUILTIN_PROFILES = {
    'wells_fargo': {
        'name': 'Wells Fargo',
        'patterns': [
            r'wells\s*fargo',
            r'business\s*bank\s*statement',
            r'business\s*choice\s*checking',
        ],
        'date_formats': ['MM/DD/YYYY', 'MM/DD'],
        'layouts': ['tabular', 'narrative'],
        'currency': 'USD',
        'features': ['running_balance', 'check_numbers', 'atm_withdrawals'],
    },
    'bank_of_america': {
        'name': 'Bank of America',
        'patterns': [
            r'bank\s*of\s*america',
            r'\bbofa\b',
            r'\bb\s*of\s*a\b',
        ],
        'date_formats': ['MM/DD/YYYY', 'YYYY-MM-DD'],
        'layouts': ['tabular', 'csv'],
        'currency': 'USD',
        'features': ['merchant_codes', 'location_data'],
    },
    'chase': {
        'name': 'Chase',
        'patterns': [
            r'jp\s*morgan\s*chase',
            r'chase\s*bank',
            r'\bchase\b',
        ],
        'date_formats': ['MM/DD/YYYY', 'DD/MM/YYYY'],
        'layouts': ['tabular', 'detailed'],
        'currency': 'USD',
        'features': ['merchant_categories', 'reference_numbers'],
    },
    'citi': {
        'name': 'Citibank',
        'patterns': [
            r'citibank',
            r'\bciti\b',
            r'citibusiness',
        ],
        'date_formats': ['DD/MM/YYYY', 'MM/DD/YYYY'],
        'layouts': ['narrative', 'structured'],
        'currency': 'USD',
        'features': ['detailed_descriptions', 'foreign_exchange'],
    },
    'us_bank': {
        'name': 'US Bank',
        'patterns': [
            r'\bu\.?s\.?\s*bank\b',
            r'usbank',
            r'us\s*bancorp',
        ],
        'date_formats': ['MM/DD/YYYY'],
        'layouts': ['simple', 'tabular'],
        'currency': 'USD',
        'features': ['basic_categories'],
    },
    GENERIC_PROFILE_KEY: {
        'name': 'Generic Bank',
        'patterns': [
            r'bank\s*statement',
            r'account\s*statement',
            r'transaction\s*history',
        ],
        'date_formats': ['MM/DD/YYYY', 'DD/MM/YYYY', 'YYYY-MM-DD'],
        'layouts': ['auto_detect'],
        'currency': 'USD',
        'features': ['adaptive_parsing'],
    },
}


class BankRegistry:
    """Ordered set of bank profiles owned by one parser instance"""

    def __init__(self, sample_size: int = 2000):
        self.sample_size = sample_size
        self._profiles: Dict[str, BankProfile] = {
            key: BankProfile.from_dict(key, data)
            for key, data in BUILTIN_PROFILES.items()
        }

    def detect(self, text: str) -> BankProfile:
        """Return the first profile whose signature appears in the statement header"""
        sample = text[:self.sample_size].lower()

        for key, profile in self._profiles.items():
            if key == GENERIC_PROFILE_KEY:
                continue
            if profile.matches(sample):
                logger.info(f"Detected bank: {profile.name}")
                return profile

        logger.info("No specific bank detected, using generic profile")
        return self._profiles[GENERIC_PROFILE_KEY]

    def register_profile(self, key: str, profile) -> BankProfile:
        """Add or replace a profile on this registry.

        Args:
            key: Registry key
            profile: A BankProfile, or a dictionary accepted by BankProfile.from_dict

        Returns:
            The registered profile
        """
        if isinstance(profile, dict):
            profile = BankProfile.from_dict(key, profile)
        if not isinstance(profile, BankProfile):
            raise TypeError(f"Unsupported bank profile type: {type(profile).__name__}")

        if key == GENERIC_PROFILE_KEY:
            self._profiles[key] = profile
        else:
            # Keep the generic fallback last
            generic = self._profiles.pop(GENERIC_PROFILE_KEY)
            self._profiles[key] = profile
            self._profiles[GENERIC_PROFILE_KEY] = generic

        logger.info(f"Registered bank profile: {key} ({profile.name})")
        return profile

    def get(self, key: str) -> Optional[BankProfile]:
        return self._profiles.get(key)

    def profiles(self) -> Dict[str, BankProfile]:
        return dict(self._profiles)
