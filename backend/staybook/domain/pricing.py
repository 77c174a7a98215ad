"""Price breakdown for a stay: nightly subtotal plus fees and taxes."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from staybook.config import Settings, settings
from staybook.domain.errors import ValidationError
from staybook.domain.money import to_money


@dataclass(frozen=True)
class PriceBreakdown:
    """Itemised price of a stay. ``total`` is the exact sum of the parts."""

    base_nightly_price: Decimal
    nights: int
    subtotal: Decimal
    service_fee: Decimal
    cleaning_fee: Decimal
    taxes: Decimal
    total: Decimal


@dataclass(frozen=True)
class PricingCalculator:
    """Computes a :class:`PriceBreakdown` from a base price and a date range.

    Rates come from configuration so deployments can change them without a
    code change.
    """

    service_fee_rate: Decimal = Decimal("0.10")
    tax_rate: Decimal = Decimal("0.12")
    cleaning_fee: Decimal = Decimal("50")

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "PricingCalculator":
        return cls(
            service_fee_rate=config.service_fee_rate,
            tax_rate=config.tax_rate,
            cleaning_fee=config.cleaning_fee,
        )

    def calculate(
        self,
        base_nightly_price: Decimal | int | float | str,
        check_in: date,
        check_out: date,
    ) -> PriceBreakdown:
        """Price a stay of ``check_out - check_in`` nights.

        Raises:
            ValidationError: if the stay is shorter than one night or the
                base price is not positive.
        """
        nights = (check_out - check_in).days
        if nights < 1:
            raise ValidationError(
                "Check-out must be at least one night after check-in",
                field="check_out",
                check_in=check_in.isoformat(),
                check_out=check_out.isoformat(),
            )

        base = to_money(base_nightly_price)
        if base <= 0:
            raise ValidationError("Base nightly price must be positive", field="base_price")

        subtotal = to_money(base * nights)
        service_fee = to_money(subtotal * self.service_fee_rate)
        cleaning_fee = to_money(self.cleaning_fee)
        taxes = to_money(subtotal * self.tax_rate)

        return PriceBreakdown(
            base_nightly_price=base,
            nights=nights,
            subtotal=subtotal,
            service_fee=service_fee,
            cleaning_fee=cleaning_fee,
            taxes=taxes,
            total=subtotal + service_fee + cleaning_fee + taxes,
        )
