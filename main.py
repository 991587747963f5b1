from jdiroster.scraper.run import _cli_entrypoint

if __name__ == "__main__":
    # Credentials come from JDI_EMAIL / JDI_PASSWORD (a local .env is loaded
    # by jdiroster.scraper.config).
    raise SystemExit(_cli_entrypoint())
