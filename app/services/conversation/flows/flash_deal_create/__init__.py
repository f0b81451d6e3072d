from .flash_deal_create_flow import FlashDealCreateFlow

__all__ = ["FlashDealCreateFlow"]
