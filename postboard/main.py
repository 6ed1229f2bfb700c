# postboard/main.py  (entry point: uvicorn postboard.main:app)
from dotenv import load_dotenv

load_dotenv()

from postboard.factory import create_app  # noqa: E402

app = create_app()
