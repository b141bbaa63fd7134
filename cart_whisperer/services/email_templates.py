"""Built-in recovery email templates.

Each template is plain string substitution over a shared layout; every value
coming from the request is HTML-escaped before it is inserted.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from html import escape

from cart_whisperer.schemas.email import CartItem, GeneratedEmail, GenerateEmailRequest

_MUTED = "#6b7280"
_BORDER = "#e5e7eb"


def format_money(amount: float) -> str:
    return f"${amount:.2f}"


def _item_row(item: CartItem) -> str:
    image = ""
    if item.image:
        image = (
            f'<img src="{escape(item.image)}" alt="{escape(item.title)}" '
            'style="width: 60px; height: 60px; object-fit: cover; margin-right: 15px;" />'
        )
    return f"""
        <tr>
          <td style="padding: 10px 0; border-bottom: 1px solid {_BORDER};">
            <div style="display: flex; align-items: center;">
              {image}
              <div>
                <p style="margin: 0; font-weight: 500;">{escape(item.title)}</p>
                <p style="margin: 5px 0 0; color: {_MUTED};">Quantity: {item.quantity}</p>
              </div>
            </div>
          </td>
          <td style="padding: 10px 0; border-bottom: 1px solid {_BORDER}; text-align: right; font-weight: 500;">
            {format_money(item.price * item.quantity)}
          </td>
        </tr>"""


def format_items(items: list[CartItem]) -> str:
    """Render cart items as table rows."""
    return "".join(_item_row(item) for item in items)


def _total_row(label: str, amount: float, color: str = "inherit") -> str:
    return f"""
                  <tr>
                    <td style="padding-top: 10px; font-weight: 600; text-align: right; color: {color};">{label}</td>
                    <td style="padding-top: 10px; font-weight: 600; text-align: right; color: {color};">{format_money(amount)}</td>
                  </tr>"""


def _layout(
    *,
    title: str,
    heading: str,
    intro: str,
    banner: str,
    cart_heading: str,
    items: list[CartItem],
    totals: str,
    prompt: str,
    cta_text: str,
    cta_color: str,
    recovery_url: str,
    footer_note: str,
    store_name: str,
) -> str:
    year = datetime.now(timezone.utc).year
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <table width="100%" cellpadding="0" cellspacing="0" role="presentation" style="border-collapse: collapse;">
    <tr>
      <td>
        <div style="text-align: center; margin-bottom: 30px;">
          <h1 style="color: #111827; font-size: 24px; margin-bottom: 10px;">{heading}</h1>
          <p style="color: {_MUTED}; font-size: 16px;">{intro}</p>
        </div>
        {banner}
        <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px; margin-bottom: 30px;">
          <h2 style="color: #111827; font-size: 18px; margin-top: 0; margin-bottom: 15px;">{cart_heading}</h2>
          <table width="100%" cellpadding="0" cellspacing="0" style="border-collapse: collapse;">
            <tbody>{format_items(items)}
            </tbody>
            <tfoot>{totals}
            </tfoot>
          </table>
        </div>
        <div style="text-align: center; margin-bottom: 30px;">
          <p style="margin-bottom: 20px; font-size: 16px;">{prompt}</p>
          <a href="{escape(recovery_url)}" style="display: inline-block; background-color: {cta_color}; color: white; font-weight: 500; padding: 12px 24px; border-radius: 6px; text-decoration: none; font-size: 16px;">{cta_text}</a>
        </div>
        <div style="color: {_MUTED}; font-size: 14px; text-align: center; margin-top: 40px; padding-top: 20px; border-top: 1px solid {_BORDER};">
          <p>{footer_note}</p>
          <p>&copy; {year} {store_name}. All rights reserved.</p>
        </div>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def _greeting_name(request: GenerateEmailRequest) -> str:
    return escape(request.customer.name or "there")


def standard_template(request: GenerateEmailRequest) -> GeneratedEmail:
    store = escape(request.store.name)
    total = request.cart.total_price
    html = _layout(
        title="Complete Your Purchase",
        heading="Don't Miss Out On Your Items",
        intro="We noticed you left some items in your cart.",
        banner="",
        cart_heading="Your Cart Summary",
        items=request.cart.items,
        totals=_total_row("Total:", total),
        prompt=f"Ready to complete your purchase, {_greeting_name(request)}?",
        cta_text="Complete My Purchase",
        cta_color="#4f46e5",
        recovery_url=request.cart.recovery_url,
        footer_note="If you have any questions about your order, please contact our customer support.",
        store_name=store,
    )
    return GeneratedEmail(subject=f"Complete your purchase from {request.store.name}", html=html)


def _percent_value(discount_percent: str) -> float:
    match = re.match(r"\s*(\d+(?:\.\d+)?)", discount_percent)
    return float(match.group(1)) if match else 0.0


def discount_template(request: GenerateEmailRequest) -> GeneratedEmail:
    store = escape(request.store.name)
    percent = escape(request.discount_percent)
    code = escape(request.discount_code)
    total = request.cart.total_price
    discounted = total * (1 - min(_percent_value(request.discount_percent), 100.0) / 100)
    banner = f"""
        <div style="background-color: #fef2f2; border-radius: 8px; padding: 20px; margin-bottom: 30px; text-align: center;">
          <h2 style="color: #991b1b; font-size: 22px; margin-top: 0; margin-bottom: 5px;">SAVE {percent}</h2>
          <p style="font-size: 18px; margin-top: 0; margin-bottom: 15px;">Use code: <strong>{code}</strong></p>
          <p style="color: {_MUTED}; font-size: 14px; margin: 0;">Offer expires in 24 hours</p>
        </div>"""
    html = _layout(
        title="Special Discount Offer",
        heading="Special Offer Just For You!",
        intro=f"We'd love to give you {percent} off your purchase.",
        banner=banner,
        cart_heading="Your Cart Summary",
        items=request.cart.items,
        totals=_total_row("Total:", total) + _total_row("With Discount:", discounted, "#991b1b"),
        prompt=f"Don't miss out on this special offer, {_greeting_name(request)}!",
        cta_text="Claim My Discount",
        cta_color="#dc2626",
        recovery_url=request.cart.recovery_url,
        footer_note="This offer is valid for 24 hours and applies to your current cart items only.",
        store_name=store,
    )
    return GeneratedEmail(
        subject=f"{request.discount_percent} OFF your cart - Limited time offer!",
        html=html,
    )


def fomo_template(request: GenerateEmailRequest) -> GeneratedEmail:
    store = escape(request.store.name)
    banner = f"""
        <div style="background-color: #fff7ed; border-radius: 8px; padding: 20px; margin-bottom: 30px; text-align: center;">
          <h2 style="color: #9a3412; font-size: 20px; margin-top: 0; margin-bottom: 10px;">Limited Stock Alert</h2>
          <p style="color: {_MUTED}; font-size: 16px; margin: 0;">Other customers are eyeing the items in your cart.</p>
        </div>"""
    html = _layout(
        title="Items Selling Fast",
        heading="Your Cart Items Are In High Demand!",
        intro="We can't guarantee availability for much longer.",
        banner=banner,
        cart_heading="Items Reserved In Your Cart",
        items=request.cart.items,
        totals=_total_row("Total:", request.cart.total_price),
        prompt=f"Secure your items now, {_greeting_name(request)}, before someone else does!",
        cta_text="Complete My Purchase Now",
        cta_color="#ea580c",
        recovery_url=request.cart.recovery_url,
        footer_note="We're holding these items for you, but we can only guarantee availability for a limited time.",
        store_name=store,
    )
    return GeneratedEmail(subject="Your items are selling fast!", html=html)


TEMPLATES = {
    "standard": standard_template,
    "discount": discount_template,
    "fomo": fomo_template,
}


def render_template(request: GenerateEmailRequest) -> GeneratedEmail:
    """Render the template named by ``request.template``."""
    return TEMPLATES[request.template](request)
