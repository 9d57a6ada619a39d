"""
Base SDK class providing credential loading and time range handling
"""

import os
import yaml
import logging
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from abc import ABC, abstractmethod

from swis_datasource_toolkit.exceptions import ConfigurationError, ValidationError
from swis_datasource_toolkit.core.models import TimeRange
from swis_datasource_toolkit.core.settings import DEFAULT_DURATION_MINUTES

logger = logging.getLogger(__name__)


class BaseSDK(ABC):
    """
    Abstract base class for SDK functionality
    Loads the YAML credentials file and enforces the source configuration interface
    """

    source_name: str = ''

    def __init__(self, credentials_file_path: str):
        """
        Initialize the base SDK with credentials file path

        Args:
            credentials_file_path: Path to the YAML credentials file
        """
        self.credentials_file_path = credentials_file_path
        self.credentials = self._load_credentials()
        self.config = self._get_source_config()

    def _load_credentials(self) -> Dict[str, Any]:
        """Load credentials from YAML file"""
        if not os.path.exists(self.credentials_file_path):
            raise ConfigurationError(f"Credentials file not found: {self.credentials_file_path}")
        try:
            with open(self.credentials_file_path, 'r') as f:
                credentials = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in credentials file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error loading credentials: {e}")

        if not credentials or not isinstance(credentials, dict):
            raise ConfigurationError("Credentials file is empty or invalid")
        return credentials

    def _get_source_config(self) -> Dict[str, Any]:
        """Get the configuration section of this SDK's source and check its required keys"""
        if self.source_name not in self.credentials:
            raise ConfigurationError(f"No credentials found for source '{self.source_name}'")
        config = self.credentials[self.source_name] or {}
        missing = [key for key in self._get_required_keys() if not config.get(key)]
        if missing:
            raise ConfigurationError(f"Missing required keys for source '{self.source_name}': {missing}")
        return config

    @abstractmethod
    def _get_required_keys(self):
        """Configuration keys that must be present for the source"""
        pass

    def _create_time_range(self, start_time: Optional[datetime] = None,
                           end_time: Optional[datetime] = None,
                           duration_minutes: Optional[int] = None) -> TimeRange:
        """Create a TimeRange, defaulting to the last hour"""
        if end_time is None:
            end_time = datetime.now(timezone.utc)
        elif end_time.tzinfo is None:
            end_time = end_time.replace(tzinfo=timezone.utc)

        if start_time is not None and start_time.tzinfo is None:
            start_time = start_time.replace(tzinfo=timezone.utc)
        if start_time is None:
            start_time = end_time - timedelta(minutes=duration_minutes or DEFAULT_DURATION_MINUTES)

        if start_time > end_time:
            raise ValidationError(f"Start time {start_time} is after end time {end_time}")

        return TimeRange(from_time=start_time, to_time=end_time)
