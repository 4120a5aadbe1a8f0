from decimal import Decimal

from cart_allocation.domain.models import LineItem
from cart_allocation.domain.services.snapshot_signature import (
    SnapshotSignature,
    compute_signature,
)


def _cart():
    return [
        LineItem(id="1", unit_price=Decimal("12.99"), quantity=1),
        LineItem(id="2", unit_price=Decimal("8.50"), quantity=2),
        LineItem(id="3", unit_price=Decimal("22.45"), quantity=1),
    ]


def test_signature_is_hex_digest():
    signature = compute_signature(_cart())
    assert len(signature) == 64
    int(signature, 16)


def test_signature_ignores_order():
    cart = _cart()
    assert compute_signature(cart) == compute_signature(list(reversed(cart)))
    assert compute_signature(cart) == compute_signature([cart[1], cart[2], cart[0]])


def test_signature_ignores_price_scale():
    a = [LineItem(id="1", unit_price=Decimal("8.50"), quantity=2)]
    b = [LineItem(id="1", unit_price=8.5, quantity=2)]
    assert compute_signature(a) == compute_signature(b)


def test_signature_changes_with_quantity():
    cart = _cart()
    changed = cart[:2] + [LineItem(id="3", unit_price=Decimal("22.45"), quantity=2)]
    assert compute_signature(cart) != compute_signature(changed)


def test_signature_changes_with_price():
    cart = _cart()
    changed = cart[:2] + [LineItem(id="3", unit_price=Decimal("22.46"), quantity=1)]
    assert compute_signature(cart) != compute_signature(changed)


def test_signature_changes_when_item_added_or_removed():
    cart = _cart()
    assert compute_signature(cart) != compute_signature(cart[:2])
    assert compute_signature([]) != compute_signature(cart[:1])


def test_signature_of_empty_cart_is_stable():
    assert compute_signature([]) == compute_signature(iter([]))


def test_snapshot_signature_matches():
    last = SnapshotSignature.from_items(_cart())

    assert last.matches(reversed(_cart()))
    assert not last.matches(_cart()[:1])
    assert str(last) == compute_signature(_cart())
