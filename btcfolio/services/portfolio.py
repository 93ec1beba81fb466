from decimal import Decimal
from typing import Iterable

from btcfolio.core.models import (
    Currency,
    DUST_THRESHOLD,
    GPStyle,
    PortfolioMetrics,
    Transaction,
    TransactionGP,
    TransactionType,
    TransferType,
)

_ZERO = Decimal("0")


def convert_to_user_currency(
    amount: Decimal,
    transaction_market: str,
    user_currency: str,
    exchange_rate: Decimal,
) -> Decimal:
    """
    Restate `amount` from the transaction's market currency in the user's
    display currency. `exchange_rate` is BRL per USD.
    Only USD <-> BRL is converted; anything else passes through unchanged.
    """
    if transaction_market == user_currency:
        return amount
    if transaction_market == Currency.BRL and user_currency == Currency.USD:
        return amount / exchange_rate
    if transaction_market == Currency.USD and user_currency == Currency.BRL:
        return amount * exchange_rate
    return amount


class PortfolioService:
    @staticmethod
    def calculate_transaction_gp(
        transaction: Transaction,
        btc_current_price: Decimal,
        user_currency: str,
        exchange_rate: Decimal,
    ) -> TransactionGP:
        """
        Gain/loss of a single transaction in the user's currency.

        Buy:      unrealized, current value of the coins minus cost plus fees.
        Sell:     realized, proceeds minus the same quantity at its recorded unit price.
        Transfer: just the current value of the moved coins, styled neutral.
        """
        if transaction.type == TransactionType.BUY:
            current_value = transaction.quantity * btc_current_price
            cost_with_fees = convert_to_user_currency(
                transaction.total_spent + transaction.fees_or_zero,
                transaction.market,
                user_currency,
                exchange_rate,
            )
            gp = current_value - cost_with_fees
            return TransactionGP(value=gp, style=GPStyle.GAIN if gp >= 0 else GPStyle.LOSS)

        if transaction.type == TransactionType.SELL:
            proceeds = convert_to_user_currency(
                transaction.total_spent, transaction.market, user_currency, exchange_rate
            )
            unit_price = convert_to_user_currency(
                transaction.price_per_coin, transaction.market, user_currency, exchange_rate
            )
            gp = proceeds - transaction.quantity * unit_price
            return TransactionGP(value=gp, style=GPStyle.GAIN if gp >= 0 else GPStyle.LOSS)

        return TransactionGP(
            value=transaction.quantity * btc_current_price,
            style=GPStyle.NEUTRAL,
        )

    @staticmethod
    def calculate_portfolio_stats(
        transactions: Iterable[Transaction],
        btc_current_price: Decimal,
        user_currency: str,
        exchange_rate: Decimal,
    ) -> PortfolioMetrics:
        """
        Fold a transaction list into portfolio totals.
        Order does not matter; every figure is a plain sum.
        """
        total_btc = _ZERO
        total_cost = _ZERO
        total_revenue = _ZERO
        total_gain_loss = _ZERO

        for t in transactions:
            if t.type == TransactionType.BUY:
                total_btc += abs(t.quantity)
                total_cost += convert_to_user_currency(
                    t.total_spent + t.fees_or_zero, t.market, user_currency, exchange_rate
                )
            elif t.type == TransactionType.SELL:
                total_btc -= abs(t.quantity)
                total_revenue += convert_to_user_currency(
                    t.total_spent, t.market, user_currency, exchange_rate
                )
            elif t.type == TransactionType.TRANSFER:
                if t.transfer_type == TransferType.IN:
                    total_btc += t.quantity
                elif t.transfer_type == TransferType.OUT:
                    total_btc -= t.quantity
                # transfers only move coins, they are not part of gain/loss
                continue

            total_gain_loss += PortfolioService.calculate_transaction_gp(
                t, btc_current_price, user_currency, exchange_rate
            ).value

        # Never show a negative balance; dust below one satoshi counts as empty
        if total_btc < 0 or abs(total_btc) < DUST_THRESHOLD:
            total_btc = _ZERO

        current_value = total_btc * btc_current_price
        net_cost = total_cost - total_revenue
        # May be negative when sells returned more than was spent
        avg_cost_basis = net_cost / total_btc if total_btc > 0 else _ZERO

        return PortfolioMetrics(
            total_btc=total_btc,
            total_cost=total_cost,
            total_revenue=total_revenue,
            net_cost=net_cost,
            current_value=current_value,
            gain_loss=total_gain_loss,
            avg_cost_basis=avg_cost_basis,
        )
