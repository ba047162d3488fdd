"""Site settings management — admin command and handler."""

from protean import handle
from protean.fields import Float
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.settings.site_settings import SiteSettings, get_site_settings


@storefront.command(part_of="SiteSettings")
class UpdateSiteSettings:
    free_shipping_threshold = Float(min_value=0.0)
    flat_shipping_fee = Float(min_value=0.0)
    max_online_payment_amount = Float(min_value=0.0)


@storefront.command_handler(part_of=SiteSettings)
class SiteSettingsHandler:
    @handle(UpdateSiteSettings)
    def update_site_settings(self, command):
        settings = get_site_settings()
        settings.update(
            free_shipping_threshold=command.free_shipping_threshold,
            flat_shipping_fee=command.flat_shipping_fee,
            max_online_payment_amount=command.max_online_payment_amount,
        )
        current_domain.repository_for(SiteSettings).add(settings)
        return settings.to_dict()
