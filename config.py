import os
from dotenv import load_dotenv

# Load .env file
load_dotenv()

class Config:
    # --- MongoDB Settings ---
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/")
    DB_NAME = os.getenv("DB_NAME", "cleaning_management") # Can be overridden in .env

    # --- Environment ---
    ENV = os.getenv("ENV", "development") # "development" or "production"
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:4200")

    # --- Email Settings (Resend) ---
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    MAIL_FROM = os.getenv("MAIL_FROM", "contracts@cleaningpro.com")

    # --- Company details shown in outgoing emails ---
    COMPANY_NAME = os.getenv("COMPANY_NAME", "Professional Cleaning Services")
    COMPANY_EMAIL = os.getenv("COMPANY_EMAIL", "contracts@cleaningpro.com")
    COMPANY_PHONE = os.getenv("COMPANY_PHONE", "+383 44 123 456")
    COMPANY_ADDRESS = os.getenv("COMPANY_ADDRESS", "Pristina, Kosovo")

    # --- Billing ---
    DEFAULT_HOURLY_RATE = float(os.getenv("DEFAULT_HOURLY_RATE", "46")) # EUR, used for schedule invoices
    DEFAULT_VAT_RATE = float(os.getenv("DEFAULT_VAT_RATE", "18")) # Kosovo standard VAT
    INVOICE_DUE_DAYS = int(os.getenv("INVOICE_DUE_DAYS", "30"))
    PAYMENT_TOKEN_TTL_DAYS = int(os.getenv("PAYMENT_TOKEN_TTL_DAYS", "7"))
    # SPA page that loads and confirms the invoice through /api/invoices/payment/<token>
    PAYMENT_PAGE_URL = os.getenv("PAYMENT_PAGE_URL", f"{FRONTEND_URL}/invoices/pay")

config = Config()
