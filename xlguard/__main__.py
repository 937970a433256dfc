from xlguard.cli import app

app(prog_name="xlguard")
