from aistor_mcp.cli import app

app(prog_name="aistor-mcp")
