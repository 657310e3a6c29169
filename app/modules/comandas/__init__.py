"""
Módulo de Comandas - Comandix

Contas de mesa/cliente vinculadas ao caixa aberto. Itens congelam o preço do
produto na inclusão e o total da comanda acompanha a soma dos subtotais.

Componentes:
- models.py: Comanda e ComandaItem
- service.py: abertura, itens, cancelamento e consultas
- payments.py: liquidação da comanda no caixa aberto
- router.py: endpoints em /api/v1/comandas
"""
