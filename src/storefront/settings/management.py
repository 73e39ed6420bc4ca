"""Bulk settings update: command and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.settings.setting import StoreSetting

logger = structlog.get_logger(__name__)


@storefront.command(part_of="StoreSetting")
class UpdateSettings:
    values = Text(required=True)  # JSON: {"key": "value", ...}


@storefront.command_handler(part_of=StoreSetting)
class StoreSettingHandler:
    @handle(UpdateSettings)
    def update_settings(self, command):
        values = json.loads(command.values) if isinstance(command.values, str) else command.values
        if not isinstance(values, dict) or not values:
            raise ValidationError({"values": ["At least one setting is required"]})

        repo = current_domain.repository_for(StoreSetting)
        for key, value in values.items():
            try:
                setting = repo.get(key)
                setting.value = str(value)
            except ObjectNotFoundError:
                setting = StoreSetting(key=key, value=str(value))
            repo.add(setting)

        logger.info("settings_updated", keys=sorted(values))
        return sorted(values)
