#!/usr/bin/env python3
import os

from dotenv import load_dotenv

load_dotenv()

from rentdesk import create_app

app = create_app(os.environ.get("CONFIG_CLASS", "rentdesk.config.ProductionConfig"))
