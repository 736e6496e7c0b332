# ui_base.py
from flask import url_for

from services.config import get_config


def nav(active: str = "checkout") -> str:
    def item(label: str, href: str, key: str):
        cls = "active" if key == active else ""
        return f'<a class="{cls}" href="{href}">{label}</a>'

    checkout = item("Checkout", url_for("checkout.checkout_form"), "checkout")
    env = get_config().environment
    badge = f'<span class="env env-{env}">{env}</span>'

    return f"""
    <style>
      .site {{ max-width: 760px; margin: 2rem auto; padding: 0 1rem; }}
      nav{{display:flex;gap:.5rem;align-items:center;margin-bottom:1rem}}
      nav a{{text-decoration:none;color:#1f2937;padding:.45rem .7rem;border-radius:8px;border:1px solid #e5e7eb}}
      nav a.active{{background:#eef2ff;color:#1f7aec;border-color:#c7d2fe}}
      nav .sp{{flex:1}}
      nav .env{{font-size:.8rem;padding:.2rem .55rem;border-radius:999px;background:#fef3c7;color:#92400e}}
      nav .env-production{{background:#dcfce7;color:#166534}}
    </style>
    <div class="site">
      <nav>
        {checkout}
        <span class="sp"></span>
        {badge}
      </nav>
    """
