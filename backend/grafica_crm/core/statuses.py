from enum import Enum


class OrderStatus(str, Enum):
    quote = "Orçamento"
    in_production = "Em Produção"
    finished = "Finalizado"
    delivered = "Entregue"
    # Nenhuma transição da UI leva a este estado, mas o valor é aceito
    archived = "Arquivado"


ONGOING_STATUSES = {OrderStatus.quote, OrderStatus.in_production}
PENDING_STATUSES = {OrderStatus.quote}
OPEN_STATUSES = {OrderStatus.quote, OrderStatus.in_production, OrderStatus.finished}
COMPLETED_STATUSES = {OrderStatus.delivered}


def status_values(statuses) -> list:
    return sorted(s.value for s in statuses)
