"""HTTP surface: health check and Telegram webhook."""
