from cpf_tracker.main import app
from cpf_tracker.scraper import config

if __name__ == "__main__":
    # The hosting environment may provide PORT; the default matches the
    # published API address.
    app.run(host="0.0.0.0", port=config.PORT, threaded=True)
