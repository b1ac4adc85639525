from ghostpost.cli import app

app()
