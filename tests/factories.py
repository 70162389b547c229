"""Builders for records in their stored (persistence) shape."""


def expense(**fields):
    """Stored-shape expense dict with sensible defaults."""
    data = {
        "date": "2025-01-10",
        "type": "COMMON",
        "category": "Mercado",
        "description": "Compra",
        "totalValue": 100,
        "paidBy": "person1",
    }
    data.update(fields)
    return data


def transaction(kind, value, person, day, **fields):
    """Goal transaction dict."""
    data = {"type": kind, "value": value, "person": person, "date": day}
    data.update(fields)
    return data


def movement(kind, value, quantity=None, person="person1", investment_id="inv1", **fields):
    """Investment movement dict."""
    data = {
        "investment_id": investment_id,
        "type": kind,
        "value": value,
        "quantity": quantity,
        "person": person,
        "date": "2025-01-10",
    }
    data.update(fields)
    return data
