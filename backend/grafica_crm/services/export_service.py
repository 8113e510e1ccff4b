"""
Exportação de pedidos: documento para impressão/PDF, link de compartilhamento
no WhatsApp e planilha com a lista de pedidos.
"""
from html import escape
from io import BytesIO
from typing import Any, Dict, List
from urllib.parse import quote

import pandas as pd

from grafica_crm.core.config import Settings
from grafica_crm.core.serialization_helpers import digits_only, format_currency, format_date, mask_phone


def _document_rows(order: Dict[str, Any]) -> List[Dict[str, Any]]:
    return order.get("batch_items") or [order]


def document_total(order: Dict[str, Any]) -> float:
    return sum(float(item.get("total_price") or 0) for item in _document_rows(order))


def render_order_document(order: Dict[str, Any], settings: Settings) -> str:
    """HTML do pedido no mesmo layout do PDF exportado pela UI (imprimir -> salvar como PDF)."""
    rows_html = "\n".join(
        "<tr>"
        f"<td>{escape(item.get('service_type') or '')}</td>"
        f"<td>{escape(item.get('description') or '-')}</td>"
        f"<td class=\"num\">{item.get('quantity') or 0}</td>"
        f"<td class=\"num\">{format_currency(item.get('unit_price'))}</td>"
        f"<td class=\"num\">{format_currency(item.get('total_price'))}</td>"
        "</tr>"
        for item in _document_rows(order)
    )
    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
<meta charset="utf-8">
<title>pedido_{order['id']}</title>
<style>
  body {{ font-family: Helvetica, Arial, sans-serif; color: #0f172a; margin: 0; }}
  header {{ background: #0f172a; color: #fff; padding: 24px 40px; }}
  header h1 {{ margin: 0; font-size: 22px; }}
  header p {{ margin: 4px 0 0; font-size: 10px; }}
  main {{ padding: 24px 40px; font-size: 12px; }}
  h2 {{ font-size: 13px; border-bottom: 1px solid #0f172a; padding-bottom: 2px; }}
  .order-head {{ display: flex; justify-content: space-between; }}
  table {{ width: 100%; border-collapse: collapse; }}
  thead th {{ background: #0f172a; color: #fff; text-align: left; padding: 6px; }}
  tbody tr:nth-child(even) {{ background: #f1f5f9; }}
  td {{ padding: 6px; }}
  td.num, th.num {{ text-align: right; }}
  tfoot td {{ background: #f1f5f9; font-weight: bold; }}
  .signature {{ margin-top: 80px; text-align: right; }}
</style>
</head>
<body>
<header>
  <h1>{escape(settings.business_name)}</h1>
  <p>{escape(settings.business_tagline)}</p>
</header>
<main>
  <div class="order-head">
    <h1>Pedido #{order['id']}</h1>
    <span>Data: {format_date(order.get('order_date'))}</span>
  </div>
  <h2>CLIENTE</h2>
  <p>Nome: {escape(order.get('customer_name') or '')}</p>
  <p>Telefone: {escape(mask_phone(order.get('customer_phone')) or '')}</p>
  <h2>DETALHES DO SERVIÇO</h2>
  <table>
    <thead>
      <tr><th>Serviço</th><th>Descrição</th><th class="num">Qtd</th><th class="num">Vlr Unit</th><th class="num">Total</th></tr>
    </thead>
    <tbody>
{rows_html}
    </tbody>
    <tfoot>
      <tr><td></td><td></td><td></td><td class="num">TOTAL GERAL</td><td class="num">{format_currency(document_total(order))}</td></tr>
    </tfoot>
  </table>
  <p>Observações: {escape(order.get('notes') or 'N/A')}</p>
  <div class="signature">
    <p>__________________________</p>
    <p>Assinatura do Cliente</p>
  </div>
</main>
</body>
</html>
"""


def build_whatsapp_share(order: Dict[str, Any], settings: Settings) -> Dict[str, str]:
    batch_items = order.get("batch_items")
    service_text = f"{len(batch_items)} itens (Diversos)" if batch_items else order.get("service_type")
    text = (
        f"Olá {order.get('customer_name')}! Seu pedido #{order['id']} ({service_text}) "
        f"está com status: {order.get('status')}. Valor total: {format_currency(document_total(order))}."
    )
    phone = digits_only(order.get("customer_phone"))
    if phone and not phone.startswith(settings.whatsapp_country_code):
        phone = settings.whatsapp_country_code + phone
    url = f"https://wa.me/{phone}?text={quote(text, safe='')}"
    return {"url": url, "text": text, "phone": phone}


SPREADSHEET_COLUMNS = {
    "id": "Pedido",
    "customer_name": "Cliente",
    "customer_phone": "Telefone",
    "service_type": "Serviço",
    "description": "Descrição",
    "quantity": "Qtd",
    "unit_price": "Vlr Unit",
    "total_price": "Total",
    "order_date": "Data",
    "delivery_date": "Entrega",
    "status": "Status",
    "batch_id": "Lote",
}


def export_orders_spreadsheet(orders: List[Dict[str, Any]]) -> bytes:
    df = pd.DataFrame(orders, columns=list(SPREADSHEET_COLUMNS.keys()))
    df = df.rename(columns=SPREADSHEET_COLUMNS)
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Pedidos")
    return buffer.getvalue()
