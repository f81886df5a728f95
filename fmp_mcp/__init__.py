"""Financial Modeling Prep MCP server: FMP data client, analysis engine and MCP tools."""
