"""Plan gate for premium post-curation features."""
from instafeed.config import Settings
from instafeed.schemas.instagram import PlanDetails


def premium_shops(settings: Settings) -> set[str]:
    return {value.strip().lower() for value in settings.PREMIUM_SHOPS.split(",") if value.strip()}


def is_premium_shop(settings: Settings, shop: str | None) -> bool:
    if settings.FORCE_PREMIUM_PLAN:
        return True
    if not shop:
        return False
    return shop.lower() in premium_shops(settings)


def plan_details(settings: Settings, shop: str) -> PlanDetails:
    premium = is_premium_shop(settings, shop)
    return PlanDetails(
        is_premium=premium,
        plan="premium" if premium else "basic",
        features={
            "pin_posts": premium,
            "hide_posts": premium,
            "attach_products": premium,
            "advanced_analytics": premium,
        },
    )
