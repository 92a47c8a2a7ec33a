from app.clm import create_app

app = create_app()
