import threading
import logging
import sys
from config import Config
from scolarite import create_app

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

flask_app = None
flask_thread = None

def run_flask():
    """Run the web front-end."""
    global flask_app
    try:
        flask_app = create_app()
        logger.info(f"Starting Flask application on port {Config.WEB_PORT}...")
        flask_app.run(host=Config.WEB_HOST, port=Config.WEB_PORT, debug=False, use_reloader=False)
    except Exception as e:
        logger.exception(f"Error running Flask app: {e}")

def run_telegram_bot():
    """Run the Telegram front-end."""
    try:
        logger.info("Starting Telegram Bot...")
        import bot
        bot.main()
    except Exception as e:
        logger.exception(f"Error running Telegram bot: {e}")

def main():
    """Run the web app in a thread and the bot in the main thread."""
    global flask_thread

    logger.info("=" * 50)
    logger.info(f"Starting school records front-ends, API at {Config.API_URL}")
    logger.info("=" * 50)

    flask_thread = threading.Thread(target=run_flask, name="FlaskThread", daemon=True)

    flask_thread.start()
    logger.info("✓ Flask app started in a separate thread")

    if not Config.TELEGRAM_BOT_ENABLED or not Config.TELEGRAM_BOT_TOKEN:
        logger.info("Telegram bot disabled, serving the web front-end only")
        try:
            flask_thread.join()
        except KeyboardInterrupt:
            logger.info("Shutting down...")
        sys.exit(0)

    logger.info("✓ Starting Telegram Bot in the main thread...")
    logger.info("Running! Press Ctrl+C to stop")

    try:
        run_telegram_bot()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(0)

if __name__ == '__main__':
    main()
