from .balance_report import BalanceReport, build_balance_report

__all__ = ["BalanceReport", "build_balance_report"]
