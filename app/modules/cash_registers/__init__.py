"""
Módulo de Caixa - Comandix

Livro-caixa por empresa: abertura com saldo inicial, suprimentos e sangrias,
totais de vendas alimentados pela liquidação de comandas e fechamento com
conferência (saldo calculado x saldo informado).

Componentes:
- models.py: CashRegister e CashMovement
- schemas.py: entradas e saídas da API
- service.py: regras de negócio com lock da linha do caixa
- router.py: endpoints em /api/v1/caixa
"""
