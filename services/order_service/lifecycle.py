"""
Order lifecycle.

Orders move through a closed set of statuses. Every status change is driven
by a `TransactionType`, except Processing -> Shipping, which happens when a
stock-out inventory ticket is issued for the order.

    New --ConfirmOrder--> Confirmed --StartProcessing--> Processing
    Processing --(stock-out ticket)--> Shipping
    Processing | Shipping --FinishOrder--> Finished
    New | Confirmed | Processing --CancelOrder--> Canceled
"""
import enum

from shared.exceptions import InvalidTransitionException


class OrderStatus(str, enum.Enum):
    NEW = "New"
    CONFIRMED = "Confirmed"
    PROCESSING = "Processing"
    SHIPPING = "Shipping"
    FINISHED = "Finished"
    CANCELED = "Canceled"


class TransactionType(str, enum.Enum):
    CONFIRM_ORDER = "ConfirmOrder"
    START_PROCESSING = "StartProcessing"
    FINISH_ORDER = "FinishOrder"
    CANCEL_ORDER = "CancelOrder"


# transaction -> (statuses it may start from, resulting status)
TRANSITIONS: dict[TransactionType, tuple[frozenset[OrderStatus], OrderStatus]] = {
    TransactionType.CONFIRM_ORDER: (frozenset({OrderStatus.NEW}), OrderStatus.CONFIRMED),
    TransactionType.START_PROCESSING: (frozenset({OrderStatus.CONFIRMED}), OrderStatus.PROCESSING),
    TransactionType.FINISH_ORDER: (
        frozenset({OrderStatus.PROCESSING, OrderStatus.SHIPPING}),
        OrderStatus.FINISHED,
    ),
    TransactionType.CANCEL_ORDER: (
        frozenset({OrderStatus.NEW, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}),
        OrderStatus.CANCELED,
    ),
}

TERMINAL_STATES: frozenset[OrderStatus] = frozenset({OrderStatus.FINISHED, OrderStatus.CANCELED})


def resolve_transition(current: OrderStatus, transaction: TransactionType) -> OrderStatus:
    """Returns the status `transaction` leads to, or raises if it is not allowed from `current`."""
    sources, target = TRANSITIONS[transaction]
    if current not in sources:
        raise InvalidTransitionException(
            "InvalidOrderTransition",
            f"Cannot apply {transaction.value} to an order in status {current.value}",
        )
    return target


def allowed_transactions(current: OrderStatus) -> list[TransactionType]:
    return [t for t, (sources, _) in TRANSITIONS.items() if current in sources]


def can_ship(current: OrderStatus) -> bool:
    return current == OrderStatus.PROCESSING
