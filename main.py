# Entry point: uvicorn main:app --host 0.0.0.0 --port 8000
import uvicorn
from decouple import config

from catalog_bot.main import create_app

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=config("HOST", default="0.0.0.0"), port=config("PORT", cast=int, default=8000))
