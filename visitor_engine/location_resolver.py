"""
Location resolution for network addresses.

Resolvers are fail-open: a lookup failure yields an empty location and is
logged, so it never blocks recording a page view.
"""

import logging
from typing import Optional

from .models import LocationInfo

logger = logging.getLogger(__name__)


class LocationResolver:
    """Base resolver. Subclasses implement lookup()."""

    def lookup(self, ip_address: Optional[str]) -> LocationInfo:
        raise NotImplementedError

    def resolve(self, ip_address: Optional[str]) -> LocationInfo:
        """Resolve an address to a coarse location.

        Args:
            ip_address: Client IP address (IPv4 or IPv6), may be None

        Returns:
            LocationInfo; empty when the lookup fails.
        """
        try:
            return self.lookup(ip_address) or LocationInfo()
        except Exception as e:
            logger.warning(f"Location lookup failed for {ip_address}: {e}")
            return LocationInfo()


class StaticLocationResolver(LocationResolver):
    """Resolver returning one fixed region for every address.

    Stands in for a geo database; the region comes from the geo config.
    """

    def __init__(
        self,
        country: str = "Ireland",
        country_code: str = "IE",
        city: str = "Dublin",
        enabled: bool = True
    ):
        self.location = LocationInfo(country=country, country_code=country_code, city=city)
        self.enabled = enabled

    def lookup(self, ip_address: Optional[str]) -> LocationInfo:
        if not self.enabled:
            return LocationInfo()
        return LocationInfo(**self.location.to_dict())
