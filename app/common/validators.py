"""
Validadores reutilizáveis para valores monetários e quantidades.

Os serviços não confiam no chamador: mesmo com os schemas Pydantic na borda
HTTP, todo valor numérico é revalidado aqui antes de qualquer lock.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Type, TypeVar

from app.common.exceptions import InvalidArgument

CENTS = Decimal("0.01")

# Limites das colunas Numeric(10, 2) e Integer
MAX_MONEY = Decimal("99999999.99")
MAX_QUANTITY = 2_147_483_647

E = TypeVar("E", bound=Enum)


def parse_money(value: Any, field: str, allow_zero: bool = True) -> Decimal:
    """
    Converte para Decimal com duas casas.

    Rejeita None, booleanos, textos não numéricos, NaN/infinito, negativos e
    valores acima de MAX_MONEY; com allow_zero=False, zero também é rejeitado.
    """
    if value is None or isinstance(value, bool):
        raise InvalidArgument(f"{field} deve ser um número.")
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidArgument(f"{field} deve ser um número.")
        if abs(amount) > MAX_MONEY:
            raise InvalidArgument(f"{field} excede o valor máximo permitido ({MAX_MONEY}).")
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"{field} deve ser um número.")

    if allow_zero and amount < 0:
        raise InvalidArgument(f"{field} não pode ser negativo.")
    if not allow_zero and amount <= 0:
        raise InvalidArgument(f"{field} deve ser um número positivo.")
    return amount


def ensure_money_in_range(amount: Decimal, field: str) -> Decimal:
    """Garante que um valor calculado cabe em Numeric(10, 2)."""
    if abs(amount) > MAX_MONEY:
        raise InvalidArgument(f"{field} excede o valor máximo permitido ({MAX_MONEY}).")
    return amount


def parse_quantity(value: Any, field: str = "Quantidade") -> int:
    """Quantidade inteira entre 1 e MAX_QUANTITY. Aceita 2.0, rejeita 2.5."""
    if value is None or isinstance(value, bool):
        raise InvalidArgument(f"{field} deve ser um número inteiro.")
    if isinstance(value, int):
        quantity = value
    else:
        try:
            as_decimal = Decimal(str(value))
            if not as_decimal.is_finite() or as_decimal != as_decimal.to_integral_value():
                raise InvalidArgument(f"{field} deve ser um número inteiro.")
        except (InvalidOperation, ValueError):
            raise InvalidArgument(f"{field} deve ser um número inteiro.")
        if as_decimal > MAX_QUANTITY:
            raise InvalidArgument(f"{field} excede o máximo permitido ({MAX_QUANTITY}).")
        quantity = int(as_decimal)

    if quantity <= 0:
        raise InvalidArgument(f"{field} deve ser maior que zero.")
    if quantity > MAX_QUANTITY:
        raise InvalidArgument(f"{field} excede o máximo permitido ({MAX_QUANTITY}).")
    return quantity


def parse_enum(enum_cls: Type[E], value: Any, label: str) -> E:
    """Aceita o membro do enum, seu valor ou seu nome; qualquer outra coisa é InvalidArgument."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if value == member.value or value == member.name:
                return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise InvalidArgument(f"{label} inválido: {value}. Valores permitidos: {allowed}.")
