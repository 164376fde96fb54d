"""Configuration for the calendar sync, read from environment variables."""
import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from processor.models import PropertyNames, RetentionWindow

logger = logging.getLogger(__name__)

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def parse_flag(value: Any) -> bool:
    """Interpret a boolean flag given as a bool or as text such as 'true' or '0'."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""


@dataclass
class Settings:
    ical_url: str
    notion_token: str
    notion_calendar: str
    id_property: str = 'UID'
    date_property: str = 'Date'
    location_property: Optional[str] = None
    days_past: Optional[int] = None
    days_future: Optional[int] = None
    default_timezone: str = 'UTC'
    dry_run: bool = False
    timeout_seconds: int = 30

    def property_names(self, title_property: str) -> PropertyNames:
        """Property names, with the title property discovered from the database schema."""
        return PropertyNames(
            title=title_property,
            identifier=self.id_property,
            date=self.date_property,
            location=self.location_property,
        )

    def retention_window(self, today: date) -> Optional[RetentionWindow]:
        """Window for new events, or None when either bound is unset."""
        if self.days_past is None or self.days_future is None:
            return None
        return RetentionWindow.from_days(self.days_past, self.days_future, today)

    def timezone(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.default_timezone)
        except ZoneInfoNotFoundError as e:
            raise ConfigurationError(f"Unknown timezone: {self.default_timezone}") from e


def get_parameter(name: str) -> str:
    """
    Read a SecureString parameter from AWS Systems Manager.

    Args:
        name: Parameter name

    Returns:
        Decrypted parameter value

    Raises:
        ConfigurationError: If the parameter cannot be read
    """
    logger.info(f"Reading parameter {name} from SSM")
    try:
        ssm = boto3.client('ssm')
        response = ssm.get_parameter(Name=name, WithDecryption=True)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error reading parameter {name}: {e}")
        raise ConfigurationError(f"Cannot read parameter {name}: {e}") from e
    return response['Parameter']['Value']


def _optional_int(environ: Mapping[str, str], key: str) -> Optional[int]:
    value = environ.get(key)
    if value is None or value == '':
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got '{value}'") from e


def _required(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key, '')
    if not value:
        raise ConfigurationError(f"{key} is not set")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    The Notion token is read from NOTION_TOKEN, or from the SSM parameter
    named by NOTION_TOKEN_PARAMETER when NOTION_TOKEN is unset.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Settings

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    if environ is None:
        environ = os.environ

    token = environ.get('NOTION_TOKEN', '')
    if not token:
        parameter = environ.get('NOTION_TOKEN_PARAMETER', '')
        if not parameter:
            raise ConfigurationError("NOTION_TOKEN or NOTION_TOKEN_PARAMETER must be set")
        token = get_parameter(parameter)

    days_past = _optional_int(environ, 'DAYS_PAST')
    days_future = _optional_int(environ, 'DAYS_FUTURE')
    if (days_past is None) != (days_future is None):
        logger.warning("Only one of DAYS_PAST and DAYS_FUTURE is set, sync window disabled")

    return Settings(
        ical_url=_required(environ, 'ICAL_URL'),
        notion_token=token,
        notion_calendar=_required(environ, 'NOTION_CALENDAR'),
        id_property=environ.get('ID_PROPERTY', 'UID'),
        date_property=environ.get('DATE_PROPERTY', 'Date'),
        location_property=environ.get('LOCATION_PROPERTY') or None,
        days_past=days_past,
        days_future=days_future,
        default_timezone=environ.get('DEFAULT_TIMEZONE', 'UTC'),
        dry_run=parse_flag(environ.get('DRY_RUN', 'false')),
        timeout_seconds=_optional_int(environ, 'TIMEOUT_SECONDS') or 30,
    )
