from protean.exceptions import ObjectNotFoundError
from sqlalchemy import update

from ordering.coupon.coupon import Coupon, normalize_code
from ordering.domain import ordering
from shared.database import uow_session
from shared.errors import CouponNotFound


@ordering.repository(part_of=Coupon)
class CouponRepository:
    def get(self, identifier) -> Coupon:
        try:
            return super().get(identifier)
        except ObjectNotFoundError:
            raise CouponNotFound(str(identifier)) from None

    def find_by_code(self, code: str) -> Coupon | None:
        return self.query.filter(code=normalize_code(code)).all().first

    def increment_usage(self, coupon_id: str) -> None:
        """Count one redemption without reading the current value first.

        Runs on the active unit of work, so the count only sticks if the order
        that redeemed the coupon commits.
        """
        table = self._dao.database_model_cls.__table__
        uow_session(self._provider.name).execute(
            update(table)
            .where(table.c.id == coupon_id)
            .values(usage_count=table.c.usage_count + 1, _version=table.c._version + 1)
        )
