"""
utilities for loading configuration data and setting up logging.

Configuration data is a (possibly nested) dictionary, normally read from a YAML or JSON file.
The classes in this package accept a ``config`` Mapping and document the parameters they support
in their class documentation.
"""
import os, json, logging
from copy import deepcopy
from collections.abc import Mapping

import yaml

from .exceptions import ConfigurationError

CONFIG_FILE_ENV_VAR = "COLLABFOLDERS_CONFIG"
DEF_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
DEF_LOG_LEVEL = logging.INFO

def merge_config(primary: Mapping, defconf: Mapping) -> Mapping:
    """
    merge two configurations, with one providing the default values for the other.  Nested
    dictionaries are merged recursively; values in ``primary`` win for all other types.

    :param dict primary:  the overriding configuration
    :param dict defconf:  the configuration providing default values
    :return:  a new dictionary containing the merged values
    """
    out = deepcopy(defconf)
    for key, val in primary.items():
        if isinstance(val, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_config(val, out[key])
        else:
            out[key] = deepcopy(val)
    return out

def load_from_file(configfile: str) -> Mapping:
    """
    read the configuration from the given file.  The format is determined by the file name
    extension: ``.json`` files are read as JSON; all others are read as YAML.

    :raises ConfigurationError:  if the file cannot be read or parsed
    """
    configfile = str(configfile)
    if not os.path.isfile(configfile):
        raise ConfigurationError(f"{configfile}: configuration file not found")

    try:
        with open(configfile) as fd:
            if configfile.endswith(".json"):
                data = json.load(fd)
            else:
                data = yaml.safe_load(fd)
    except (ValueError, yaml.YAMLError) as ex:
        raise ConfigurationError(f"{configfile}: config file format error: {str(ex)}") from ex
    except OSError as ex:
        raise ConfigurationError(f"{configfile}: unable to read config file: {str(ex)}") from ex

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"{configfile}: config file does not contain a dictionary")
    return data

def resolve_configuration(location: str=None) -> Mapping:
    """
    load the configuration from the given file location.  If a location is not provided, the
    file named by the ``COLLABFOLDERS_CONFIG`` environment variable is loaded.

    :raises ConfigurationError:  if no location is given or set, or the file cannot be loaded
    """
    if not location:
        location = os.environ.get(CONFIG_FILE_ENV_VAR)
    if not location:
        raise ConfigurationError("No configuration file specified (set "+CONFIG_FILE_ENV_VAR+")")
    return load_from_file(location)

def configure_log(logfile: str=None, level: int=None, format: str=None, config: Mapping=None,
                  addstderr: bool=False):
    """
    configure the root logger for an application.  Values given explicitly as arguments override
    those given in ``config`` (via the ``logfile``, ``loglevel``, and ``logformat`` parameters).

    :param str   logfile:  the path to the file to write log messages to.  If relative, it is
                           taken to be relative to the ``logdir`` config parameter (if set).
    :param int     level:  the minimum message level to record
    :param str    format:  the log message format
    :param dict   config:  the application configuration
    :param bool addstderr: if True, also send messages to standard error
    """
    if not config:
        config = {}
    if not logfile:
        logfile = config.get('logfile')
    if level is None:
        level = config.get('loglevel', DEF_LOG_LEVEL)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ConfigurationError("loglevel: unrecognized level name")
    if not format:
        format = config.get('logformat', DEF_LOG_FORMAT)

    rootlog = logging.getLogger()
    rootlog.setLevel(level)
    fmtr = logging.Formatter(format)

    if logfile:
        if not os.path.isabs(logfile) and config.get('logdir'):
            logfile = os.path.join(config['logdir'], logfile)
        hdlr = logging.FileHandler(logfile)
        hdlr.setLevel(level)
        hdlr.setFormatter(fmtr)
        rootlog.addHandler(hdlr)

    if addstderr or not logfile:
        hdlr = logging.StreamHandler()
        hdlr.setLevel(level)
        hdlr.setFormatter(fmtr)
        rootlog.addHandler(hdlr)

    return rootlog
