import uvicorn
import os
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()
    uvicorn.run(
        "backend.main:app",
        host=os.getenv("DOMAINGUARD_HOST", "127.0.0.1"),
        port=int(os.getenv("DOMAINGUARD_PORT", "3000")),
        reload=os.getenv("DOMAINGUARD_RELOAD", "False").lower() == "true",
    )
