"""Purchase receipt email, sent once an order is paid."""

from decimal import Decimal
from html import escape

from shared.config.settings import SERVER_URL


def format_currency(amount) -> str:
    return f"${Decimal(str(amount)):,.2f}"


class PurchaseReceipt:

    @staticmethod
    def _image_url(image: str) -> str:
        return f"{SERVER_URL}{image}" if image.startswith("/") else image

    @staticmethod
    def render(order) -> dict:
        """Build subject and HTML body from an order with its items loaded."""
        item_rows = "".join(
            "<tr>"
            f'<td><img src="{escape(PurchaseReceipt._image_url(item.image))}" '
            f'alt="{escape(item.name)}" width="80" height="80"/></td>'
            f"<td>{escape(item.name)} x{item.qty}</td>"
            f'<td align="right">{format_currency(item.price)}</td>'
            "</tr>"
            for item in order.items
        )
        total_rows = "".join(
            f'<tr><td colspan="2" align="right">{label}</td>'
            f'<td align="right">{format_currency(amount)}</td></tr>'
            for label, amount in (
                ("Items", order.items_price),
                ("Tax", order.tax_price),
                ("Shipping", order.shipping_price),
                ("Total", order.total_price),
            )
        )
        purchase_date = order.created_at.strftime("%b %d, %Y") if order.created_at else ""
        html = (
            "<html><body>"
            "<h1>Purchase Receipt</h1>"
            "<table><tr>"
            f"<td>Order ID<br/>{escape(str(order.id))}</td>"
            f"<td>Purchase Date<br/>{purchase_date}</td>"
            f"<td>Price Paid<br/>{format_currency(order.total_price)}</td>"
            "</tr></table>"
            f"<table>{item_rows}{total_rows}</table>"
            "</body></html>"
        )
        return {"subject": f"Order Confirmation {order.id}", "html": html}
