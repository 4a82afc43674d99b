from app.ems import create_app

app = create_app()
