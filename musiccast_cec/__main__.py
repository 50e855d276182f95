"""
Run the bridge: python -m musiccast_cec -i tv -a 192.168.1.20 -v 90

Command line options override the environment / .env settings.
"""
import argparse
import logging

import uvicorn

from musiccast_cec.core.config import settings
from musiccast_cec.core.logging import setup_logging

log = logging.getLogger("musiccast_cec")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Make a Yamaha MusicCast device respond to TV commands over HDMI-CEC, "
                    "including power on / off and volume control")
    parser.add_argument("--input", "-i", default=settings.MUSICCAST_INPUT,
                        help="MusicCast input name to set when powering on (default: %(default)s)")
    parser.add_argument("--address", "-a", default=settings.MUSICCAST_ADDRESS,
                        help="Address of the MusicCast device (default: %(default)s)")
    parser.add_argument("--volume", "-v", type=int, default=settings.MUSICCAST_VOLUME,
                        help="Volume to set after powering on (default: %(default)s)")
    parser.add_argument("--port", default=settings.CEC_PORT,
                        help="CEC adapter port, e.g. /dev/cec0 (default: first detected adapter)")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    parser.add_argument("--host", default=settings.API_HOST, help="HTTP API bind address")
    parser.add_argument("--http-port", type=int, default=settings.API_PORT, help="HTTP API port")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings.MUSICCAST_INPUT = args.input
    settings.MUSICCAST_ADDRESS = args.address
    settings.MUSICCAST_VOLUME = args.volume
    settings.CEC_PORT = args.port
    settings.LOG_LEVEL = args.log_level
    setup_logging(settings.LOG_LEVEL)
    log.info("DeviceData: input=%s, address=%s, volume=%d",
             settings.MUSICCAST_INPUT, settings.MUSICCAST_ADDRESS, settings.MUSICCAST_VOLUME)

    from musiccast_cec.main import app
    uvicorn.run(app, host=args.host, port=args.http_port, log_config=None)


if __name__ == "__main__":
    main()
