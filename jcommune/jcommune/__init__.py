"""Project package for the jcommune forum."""
