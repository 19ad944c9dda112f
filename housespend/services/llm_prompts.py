"""Prompt templates for receipt analysis."""

RECEIPT_ANALYSIS_SYSTEM_PROMPT = """You are an expert at reading purchase receipts. Extract precise, structured information."""


def get_receipt_analysis_prompt(category_names: list[str]) -> str:
    """Generate the prompt for a full receipt analysis."""
    categories_str = "|".join(category_names)
    return f"""Analyze this purchase receipt and extract the following information as JSON:

{{
  "storeName": "name of the store",
  "purchaseDate": "YYYY-MM-DD or null if not found",
  "totalAmount": 0.00,
  "items": [
    {{
      "name": "product name",
      "quantity": 1.0,
      "unitPrice": 0.00,
      "totalPrice": 0.00,
      "categoryName": "{categories_str}",
      "isDiscount": false
    }}
  ]
}}

IMPORTANT:
- Identify EVERY product on the receipt
- For each product, choose the most appropriate category from the list provided, spelled exactly as listed
- If a product is discounted or on sale, set isDiscount to true
- totalAmount must be the final total of the receipt
- Quantities may be fractional for products sold by weight (e.g. 0.532 kg)
- If a field cannot be identified, use null
- Keep product names as printed on the receipt, with abbreviations expanded when obvious

Respond ONLY with the JSON object, no other text."""


STORE_NAME_PROMPT = """Look at this purchase receipt and extract ONLY the name of the store where the purchase was made. Respond with the store name alone, without any extra text or JSON formatting."""
