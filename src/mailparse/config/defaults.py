"""
mailparse.config.defaults - Default configuration values.
"""

DEFAULT_CONFIG = {
    "logs": {
        # Searched when no log file is given on the command line
        "paths": ["/var/log/**/mail*.log"],
    },
    "parser": {
        "long_queue_ids": False,
        "ignored_programs": [],
        "ignored_messages": [],
    },
    "workers": {
        "jobs": 0,  # 0 = one per CPU
        "chunk_lines": 0,  # 0 = one shard per file
    },
    "output": {
        "format": "text",
        "color": "auto",
        "indent": 2,
        "indent_step": 4,
    },
}

CONFIG_FILE_NAME = ".mailparse.toml"

ENV_PREFIX = "MAILPARSE_"
