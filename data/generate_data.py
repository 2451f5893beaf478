import json
import os

import numpy as np
import pandas as pd

np.random.seed(42)

OUT_DIR = os.path.dirname(os.path.abspath(__file__))

# ──────────────────────────────────────────────────────────────────────────────
# Sample catalog: prices gross (inc. 20% VAT), costs net
# ──────────────────────────────────────────────────────────────────────────────
CATALOG_CONFIG = {
    # Kitchen
    "KIT-KNF-08": {"name": "Chef Knife 8in",          "price": 34.99, "cost": 11.20, "cat": "Kitchen", "sub": "Knives",   "kg": 0.45, "velocity": 14},
    "KIT-BRD-L":  {"name": "Bamboo Board Large",      "price": 23.99, "cost": 8.00,  "cat": "Kitchen", "sub": "Boards",   "kg": 1.80, "velocity": 22},
    "KIT-PAN-28": {"name": "Non-stick Pan 28cm",      "price": 42.50, "cost": 16.40, "cat": "Kitchen", "sub": "Cookware", "kg": 1.95, "velocity": 9},
    "KIT-SCL-DG": {"name": "Digital Kitchen Scale",   "price": 15.99, "cost": 5.10,  "cat": "Kitchen", "sub": "Gadgets",  "kg": 0.60, "velocity": 31},

    # Garden
    "GDN-HOS-30": {"name": "Expandable Hose 30m",     "price": 39.95, "cost": 14.00, "cat": "Garden",  "sub": "Watering", "kg": 2.70, "velocity": 7},
    "GDN-GLV-M":  {"name": "Gardening Gloves M",      "price": 8.99,  "cost": 2.30,  "cat": "Garden",  "sub": "Apparel",  "kg": 0.15, "velocity": 40},
    "GDN-PRN-01": {"name": "Bypass Pruner",           "price": 19.49, "cost": 6.90,  "cat": "Garden",  "sub": "Tools",    "kg": 0.35, "velocity": 18},

    # Home
    "HOM-LMP-DK": {"name": "LED Desk Lamp",           "price": 29.99, "cost": 10.50, "cat": "Home",    "sub": "Lighting", "kg": 1.10, "velocity": 12},
    "HOM-BLK-QN": {"name": "Weighted Blanket Queen",  "price": 69.00, "cost": 27.00, "cat": "Home",    "sub": "Bedding",  "kg": 7.20, "velocity": 4},
}

PLATFORMS = {
    "Amazon":   {"commission": 15.0, "color": "#FF9900"},
    "eBay":     {"commission": 12.8, "color": "#E53238"},
    "OnBuy":    {"commission": 9.0,  "color": "#0F6FB7"},
    "TikTok":   {"commission": 5.0,  "color": "#010101"},
}

LOGISTICS_TABLE = [
    {"id": "RM48",      "name": "RM-48",       "carrier": "Royal Mail", "price": 3.50,  "maxWeight": 2.0},
    {"id": "RM48-NI",   "name": "RM-48-NI",    "carrier": "Royal Mail", "price": 5.90,  "maxWeight": 2.0},
    {"id": "DPD-STD",   "name": "DPD-STD",     "carrier": "DPD",        "price": 6.95,  "maxWeight": 15.0},
    {"id": "DPD-Z",     "name": "DPD-Z",       "carrier": "DPD",        "price": 14.50, "maxWeight": 15.0},
    {"id": "PALLET",    "name": "",            "carrier": "Freight",    "price": 45.00, "maxWeight": None},
    {"id": "PICKUP",    "name": "Click & Collect", "carrier": "Store",  "price": 0.00,  "maxWeight": None},
]

DAYS = 60


def generate_catalog():
    products = []
    for sku, cfg in CATALOG_CONFIG.items():
        channels = []
        for i, platform in enumerate(PLATFORMS):
            # Some platforms carry their own price and SKU alias
            if np.random.rand() < 0.5:
                channels.append({
                    "platform": platform,
                    "price":    round(cfg["price"] * np.random.choice([0.95, 1.0, 1.05]), 2),
                    "skuAlias": f"{sku.replace('-', '_')}_{i + 1}",
                })
        products.append({
            "sku":               sku,
            "name":              cfg["name"],
            "category":          cfg["cat"],
            "subcategory":       cfg["sub"],
            "currentPrice":      cfg["price"],
            "caPrice":           None,
            "costPrice":         cfg["cost"],
            "wmsFee":            round(0.45 + cfg["kg"] * 0.12, 2),
            "otherFee":          0.25,
            "subscriptionFee":   0.10,
            "adsFee":            round(cfg["price"] * 0.04, 2),
            "averageDailySales": cfg["velocity"],
            "stockLevel":        int(cfg["velocity"] * np.random.randint(20, 90)),
            "cartonDimensions":  {"weight": cfg["kg"]},
            "postage":           4.99,
            "channels":          channels,
        })
    return products


def generate_price_logs(products):
    start = pd.Timestamp.today().normalize() - pd.Timedelta(days=DAYS)
    rows = []
    for p in products:
        platforms = [c["platform"] for c in p["channels"]] or list(PLATFORMS)
        for day in range(DAYS):
            # Roughly one price drop a fortnight
            discounted = np.random.rand() < 0.07
            price = round(p["currentPrice"] * (0.85 if discounted else 1.0), 2)
            lift = 1.6 if discounted else 1.0
            velocity = max(0, int(np.random.normal(p["averageDailySales"] * lift, p["averageDailySales"] * 0.2)))
            net = price / 1.2
            margin = (net - p["costPrice"] - p["wmsFee"]) / net * 100
            rows.append({
                "sku":      p["sku"],
                "date":     (start + pd.Timedelta(days=day)).strftime("%Y-%m-%d"),
                "price":    price,
                "velocity": velocity,
                "platform": np.random.choice(platforms),
                "margin":   round(margin, 1),
                "adsSpend": round(price * velocity * np.random.uniform(0.02, 0.08), 2),
            })
    return pd.DataFrame(rows)


def generate_data():
    products = generate_catalog()
    logs = generate_price_logs(products)

    with open(os.path.join(OUT_DIR, "sample_catalog.json"), "w") as fh:
        json.dump(
            {"products": products, "pricingRules": PLATFORMS, "logisticsRules": LOGISTICS_TABLE},
            fh,
            indent=2,
        )
    logs.to_csv(os.path.join(OUT_DIR, "sample_price_logs.csv"), index=False)
    print(f"Sample data generated: {len(products)} products, {len(logs)} price-log rows.")


if __name__ == "__main__":
    generate_data()
