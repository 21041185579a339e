"""
constants.py

Word and domain lists shared by the heuristic scorer, the redirect expander
and the HTML signal extractor.
"""

# Link shorteners: expanded before list lookups, and penalised by the scorer
SHORTENERS = {
    "bit.ly",
    "tinyurl.com",
    "t.co",
    "goo.gl",
    "ow.ly",
    "buff.ly",
}

# TLDs frequently used for throwaway phishing domains
SUSPICIOUS_TLDS = {"zip", "mov", "tk", "gq", "ml", "cf", "ga"}

# Brands checked for typosquatting
BRANDS = (
    "google",
    "facebook",
    "apple",
    "microsoft",
    "amazon",
    "paypal",
    "netflix",
    "instagram",
    "whatsapp",
    "twitter",
    "bankofamerica",
    "chase",
    "wellsfargo",
    "hsbc",
    "citibank",
)

# Order matters: keyword hits are reported in this order
SUSPICIOUS_WORDS = (
    "login",
    "verify",
    "update",
    "password",
    "account",
    "billing",
    "secure",
    "confirm",
    "unlock",
    "limited",
    "urgent",
)

# Subset looked for in visible page text
PAGE_KEYWORDS = (
    "login",
    "verify",
    "update",
    "password",
    "account",
    "billing",
    "secure",
    "confirm",
)
