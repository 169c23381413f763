"""Prompts sent to the LLM providers."""

INVOICE_PARSING_PROMPT = """Analyze this logistics invoice image and extract the following information as structured JSON:

INVOICE INFORMATION:
- Service
- Freight Bill No
- Shipment Date
- Amount Due
- Payment Due Date
- FED TAX ID

REMIT TO INFORMATION:
- Company Name
- Address (full address as one string)
- Phone / Fax
- Email / Website
- Account No

BILL TO & PAYMENT DUE FROM:
- Company Name
- Address (full address as one string)
- Phone
- Account No

SHIPPER INFORMATION:
- Shipper Account #, Name, Address (full address as one string), Phone

CONSIGNEE INFORMATION:
- Consignee Account #, Name, Address (full address as one string), Phone

SHIPMENT DETAILS:
- P.O. Number
- Bill of Lading No
- Tariff
- Payment Terms
- Total Pieces
- Total Weight

LINE ITEMS (extract each piece/line item in the order they appear):
- Number of pieces
- Description
- Weight (lbs)
- Class
- Rate
- Charge

TOTALS:
- Subtotal
- Tax amount
- Total Amount

Format as JSON with this exact structure:
{
    "service": "string",
    "freightBillNo": "string",
    "shipmentDate": "string",
    "amountDue": { "currencySymbol": "$", "amount": 0.00 },
    "paymentDueDate": "string",
    "fedTaxId": "string",
    "remitTo": {
        "name": "string",
        "address": { "fullAddress": "string" },
        "phone": "string",
        "fax": "string",
        "email": "string",
        "website": "string",
        "accountNumber": "string"
    },
    "billTo": {
        "name": "string",
        "address": { "fullAddress": "string" },
        "phone": "string",
        "accountNumber": "string"
    },
    "shipper": {
        "accountNumber": "string",
        "name": "string",
        "address": { "fullAddress": "string" },
        "phone": "string"
    },
    "consignee": {
        "accountNumber": "string",
        "name": "string",
        "address": { "fullAddress": "string" },
        "phone": "string"
    },
    "shipmentDetails": {
        "service": "string",
        "shipmentDate": "string",
        "poNumber": "string",
        "billOfLading": "string",
        "tariff": "string",
        "paymentTerms": "string",
        "totalPieces": 0,
        "totalWeight": 0.00
    },
    "items": [
        {
            "pieces": 0,
            "description": "string",
            "weight": 0.00,
            "class": "string",
            "rate": 0.00,
            "charge": { "currencySymbol": "$", "amount": 0.00 }
        }
    ],
    "subTotal": { "currencySymbol": "$", "amount": 0.00 },
    "totalTax": { "currencySymbol": "$", "amount": 0.00 },
    "invoiceTotal": { "currencySymbol": "$", "amount": 0.00 }
}

Use null for any value that is not present on the invoice. Return only the JSON, with no commentary."""


WEATHER_SUMMARY_PROMPT = """Given this weather data for a delivery route from {origin} to {destination} on {date}, provide a brief summary of potential weather-related risks that could impact delivery timing or safety:

{weather_data}

Focus on factors such as:
- Snow or ice that may delay transit
- Heavy rain or storms that could disrupt roads
- Extreme heat or cold affecting delivery conditions
- Poor visibility impacting transportation

Keep the summary concise (2-3 sentences) and suitable for informing customers about possible delays or issues."""
