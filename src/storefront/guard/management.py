"""Ban list administration: commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.guard.banned_ip import BannedIp, is_valid_ip, normalize_ip

logger = structlog.get_logger(__name__)


@storefront.command(part_of="BannedIp")
class BanIp:
    ip_address = String(required=True, max_length=100)
    reason = Text()


@storefront.command(part_of="BannedIp")
class UnbanIp:
    ip_address = String(required=True, max_length=100)


@storefront.command_handler(part_of=BannedIp)
class BannedIpHandler:
    @handle(BanIp)
    def ban_ip(self, command):
        ip = normalize_ip(command.ip_address)
        if not is_valid_ip(ip):
            raise ValidationError({"ip_address": ["Invalid IP address format."]})

        repo = current_domain.repository_for(BannedIp)
        reason = (command.reason or "").strip() or None
        try:
            banned = repo.get(ip)
            banned.reason = reason
        except ObjectNotFoundError:
            banned = BannedIp(ip_address=ip, reason=reason)
        repo.add(banned)

        logger.info("ip_banned", client_ip=ip)
        return ip

    @handle(UnbanIp)
    def unban_ip(self, command):
        ip = normalize_ip(command.ip_address)
        repo = current_domain.repository_for(BannedIp)
        try:
            banned = repo.get(ip)
        except ObjectNotFoundError:
            return None
        repo._dao.delete(banned)
        logger.info("ip_unbanned", client_ip=ip)
        return ip
