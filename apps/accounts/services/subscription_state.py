"""
Subscription expiry bookkeeping.

Paid plans run until ``subscription_expiry``. Nothing runs on the
expiry instant itself; the status is lapsed lazily whenever the account
is read through login or the profile endpoints.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from django.utils import timezone

from apps.accounts.models import SubscriptionStatus, User
from config.logging import get_logger

logger = get_logger(__name__)


def is_subscription_expired(user: User, now: Optional[datetime] = None) -> bool:
    if user.subscription_expiry is None:
        return False
    return user.subscription_expiry <= (now or timezone.now())


def subscription_days_left(user: User, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days remaining on the plan, rounded up; ``None`` without an expiry."""
    if user.subscription_expiry is None:
        return None
    remaining = user.subscription_expiry - (now or timezone.now())
    if remaining <= timedelta(0):
        return 0
    return math.ceil(remaining / timedelta(days=1))


def lapse_expired_subscription(user: User, now: Optional[datetime] = None) -> bool:
    """
    Move an ACTIVE subscription past its expiry to INACTIVE.

    The package and dates are kept so the user can see what lapsed.
    Returns True when this call changed the status.
    """
    now = now or timezone.now()
    if user.subscription_status != SubscriptionStatus.ACTIVE or not is_subscription_expired(user, now):
        return False

    changed = User.objects.filter(
        pk=user.pk,
        subscription_status=SubscriptionStatus.ACTIVE,
        subscription_expiry__lte=now,
    ).update(subscription_status=SubscriptionStatus.INACTIVE)

    user.subscription_status = SubscriptionStatus.INACTIVE
    if changed:
        logger.info("Subscription for {} lapsed (expired {})", user.id, user.subscription_expiry)
    return bool(changed)
