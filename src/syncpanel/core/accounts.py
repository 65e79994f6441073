"""Which accounts the panel lists, given an account-type and authority filter."""
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

A = TypeVar("A")


def show_account(
    authorities_filter: Optional[Sequence[str]],
    account_authorities: Optional[Sequence[str]],
) -> bool:
    """
    Decide whether an account passes the authority filter.

    With no filter every account is shown. Otherwise the account must sync at
    least one of the filtered authorities.
    """
    if not authorities_filter:
        return True
    if not account_authorities:
        return False
    wanted = set(authorities_filter)
    return any(authority in wanted for authority in account_authorities)


def visible_accounts(
    accounts: Iterable[A],
    authorities_for_type: Callable[[str], List[str]],
    account_type: Optional[str] = None,
    authorities_filter: Optional[Sequence[str]] = None,
) -> List[Tuple[A, List[str]]]:
    """
    Filter accounts down to the rows the panel shows.

    Args:
        accounts: Objects with an `account_type` attribute, in display order.
        authorities_for_type: Maps an account type to its sync authorities.
        account_type: If set, accounts of any other type are skipped.
        authorities_filter: Optional authority whitelist (see show_account).

    Returns:
        (account, authorities) pairs in input order. The first pair, if any,
        is the panel's "first account".
    """
    rows: List[Tuple[A, List[str]]] = []
    for account in accounts:
        if account_type is not None and account.account_type != account_type:
            continue
        authorities = authorities_for_type(account.account_type)
        if show_account(authorities_filter, authorities):
            rows.append((account, authorities))
    return rows
