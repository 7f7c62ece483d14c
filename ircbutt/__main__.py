"""
Runs the bot::

    python -m ircbutt config.ini
"""
import argparse
import logging

from ircbutt import Config, __version__
from ircbutt.capabilities import build_dispatcher

logger = logging.getLogger('ircbutt')


def main(argv=None):
    parser = argparse.ArgumentParser(prog='ircbutt', description='IRCbutt, a fact-learning IRC bot.')
    parser.add_argument('config', help='Path to the INI configuration file.')
    parser.add_argument(
        '--log-level', default='INFO', choices=('DEBUG', 'INFO', 'WARNING', 'ERROR'),
        help='Logging verbosity (default: %(default)s)'
    )
    parser.add_argument('--version', action='version', version='%(prog)s ' + __version__)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    config = Config(filename=args.config)
    dispatcher = build_dispatcher(config)

    # pydle is only needed once we actually go online.
    from ircbutt.bot import Bot
    bot = Bot(dispatcher, config=config)
    try:
        bot.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
    finally:
        dispatcher.storage.close()


if __name__ == '__main__':
    main()
