from filewatch.cli.main import app

app(prog_name="filewatch")
