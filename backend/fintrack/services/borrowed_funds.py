from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, selectinload

from fintrack.models.borrowed_fund import BorrowedFund
from fintrack.services.inputs import BorrowedFundItem, BorrowedFundsSummary
from fintrack.services.period import month_window
from fintrack.utils.decimal_math import money, pct


logger = logging.getLogger("fintrack.borrowed_funds")


def profit_loss_percent(profit_loss: Decimal, borrowed: Decimal) -> Decimal:
    return pct(profit_loss / borrowed * Decimal("100")) if borrowed else pct(0)


@dataclass(frozen=True)
class BorrowedFundValuation:
    current_value: Decimal
    profit_loss: Decimal
    profit_loss_pct: Decimal


def borrowed_fund_profit_loss(fund: BorrowedFund) -> BorrowedFundValuation:
    """Value a borrowed fund through the holding it was invested in.

    Units bought are ``borrowed_amount / avg_cost``; they are priced at the
    holding's current price. Funds without a linked holding are worth nothing
    extra, and a holding without a price keeps the borrowed amount as value.
    """
    holding = fund.invested_in_holding
    if fund.invested_in_holding_id is None or holding is None:
        return BorrowedFundValuation(current_value=money(0), profit_loss=money(0), profit_loss_pct=pct(0))

    borrowed = money(fund.borrowed_amount)
    if holding.current_price is None or not holding.avg_cost:
        return BorrowedFundValuation(current_value=borrowed, profit_loss=money(0), profit_loss_pct=pct(0))

    units = borrowed / Decimal(holding.avg_cost)
    current_value = money(units * Decimal(holding.current_price))
    profit_loss = money(current_value - borrowed)
    return BorrowedFundValuation(
        current_value=current_value,
        profit_loss=profit_loss,
        profit_loss_pct=profit_loss_percent(profit_loss, borrowed),
    )


def refresh_borrowed_fund_valuations(db: Session, user_id: int) -> list[BorrowedFund]:
    funds = list(
        db.scalars(
            select(BorrowedFund)
            .options(selectinload(BorrowedFund.invested_in_holding))
            .where(
                BorrowedFund.user_id == user_id,
                BorrowedFund.invested_in_holding_id.is_not(None),
                BorrowedFund.is_fully_returned.is_(False),
            )
            .order_by(BorrowedFund.id)
        ).all()
    )
    for fund in funds:
        valuation = borrowed_fund_profit_loss(fund)
        fund.current_value = valuation.current_value
        fund.profit_loss = valuation.profit_loss
    db.flush()
    logger.info("Refreshed %s borrowed fund valuations user_id=%s", len(funds), user_id)
    return funds


def _invested_in_label(fund: BorrowedFund) -> str | None:
    holding = fund.invested_in_holding
    if holding is None:
        return None
    return f"{holding.symbol} - {holding.name}"


def summarize_borrowed_funds(db: Session, user_id: int, year: int, month: int) -> BorrowedFundsSummary:
    window = month_window(year, month)

    received_rows = db.scalars(
        select(BorrowedFund.borrowed_amount).where(
            BorrowedFund.user_id == user_id,
            BorrowedFund.borrowed_date >= window.start,
            BorrowedFund.borrowed_date < window.end,
        )
    ).all()
    received = money(sum((money(value) for value in received_rows), money(0)))

    # still outstanding, or returned during this month
    funds = list(
        db.scalars(
            select(BorrowedFund)
            .options(selectinload(BorrowedFund.invested_in_holding))
            .where(
                BorrowedFund.user_id == user_id,
                BorrowedFund.borrowed_date < window.end,
                or_(
                    BorrowedFund.is_fully_returned.is_(False),
                    and_(
                        BorrowedFund.actual_return_date >= window.start,
                        BorrowedFund.actual_return_date < window.end,
                    ),
                ),
            )
            .order_by(BorrowedFund.borrowed_date, BorrowedFund.id)
        ).all()
    )

    returned = money(0)
    profit = money(0)
    items: list[BorrowedFundItem] = []
    for fund in funds:
        if window.contains(fund.actual_return_date):
            returned = money(returned + money(fund.returned_amount))
        borrowed = money(fund.borrowed_amount)
        profit_loss = money(fund.profit_loss) if fund.profit_loss is not None else None
        if profit_loss is not None:
            profit = money(profit + profit_loss)
        items.append(
            BorrowedFundItem(
                fund_id=fund.id,
                lender_name=fund.lender_name,
                borrowed_amount=borrowed,
                returned_amount=money(fund.returned_amount),
                current_value=money(fund.current_value) if fund.current_value is not None else None,
                profit_loss=profit_loss,
                invested_in=_invested_in_label(fund),
                is_fully_returned=fund.is_fully_returned,
                profit_loss_pct=profit_loss_percent(profit_loss, borrowed) if profit_loss is not None else None,
            )
        )

    return BorrowedFundsSummary(
        received=received,
        returned=returned,
        count=sum(1 for fund in funds if not fund.is_fully_returned),
        profit=profit,
        items=tuple(items),
    )


def borrowed_funds_payload(summary: BorrowedFundsSummary) -> list[dict]:
    return [
        {
            "fund_id": item.fund_id,
            "lender_name": item.lender_name,
            "borrowed_amount": str(item.borrowed_amount),
            "returned_amount": str(item.returned_amount),
            "current_value": str(item.current_value) if item.current_value is not None else None,
            "profit_loss": str(item.profit_loss) if item.profit_loss is not None else None,
            "profit_loss_pct": str(item.profit_loss_pct) if item.profit_loss_pct is not None else None,
            "invested_in": item.invested_in,
            "is_fully_returned": item.is_fully_returned,
        }
        for item in summary.items
    ]
