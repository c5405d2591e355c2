# environment driven settings, read once at import time
import os

DEBUG = bool(os.getenv("DEBUG"))

DB_PATH = os.getenv("TICKETPOS_DB", "data/ticketpos.sqlite")
RECEIPTS_DIR = os.getenv("TICKETPOS_RECEIPTS_DIR", "data/receipts")

COMPANY_NAME = os.getenv("TICKETPOS_COMPANY", "TICKET SALES")
CURRENCY = os.getenv("TICKETPOS_CURRENCY", "S/")

# bcrypt work factor, tests lower it to keep hashing fast
BCRYPT_ROUNDS = int(os.getenv("TICKETPOS_BCRYPT_ROUNDS", "12"))
