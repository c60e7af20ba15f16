"""CLI sub-commands: init, config, parts, versions, apply and export."""
