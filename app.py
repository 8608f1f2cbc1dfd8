import os

from earquiz import create_app, settings

app = create_app()

if __name__ == "__main__":
    app.run(host="127.0.0.1", port=int(os.getenv("PORT", "5000")), debug=settings.DEBUG)
