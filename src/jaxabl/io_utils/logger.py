from datetime import datetime
import logging
from platform import python_version
import os
from typing import Dict, List

import git

import jax
from jax import version as jax_version
from jaxlib import version as jaxlib_version

import jaxabl

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "NONE": logging.CRITICAL,
}

# LINE WIDTH OF THE BOXED LOG OUTPUT
WIDTH = 80


def get_git_sha() -> str:
    """Commit of the repository containing jaxabl,
    "None" for installations outside a repository."""
    try:
        repo = git.Repo(os.path.dirname(os.path.abspath(__file__)),
                        search_parent_directories=True)
        return repo.head.object.hexsha
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        return "None"
    except ValueError:
        # repository without commits
        return "None"


class Logger:
    """Logger of the ABL postprocessing. Writes boxed
    log output to screen and, if configured, to
    output.log in the output directory.

    Logging levels ending in _TO_FILE suppress the
    screen output.
    """

    def __init__(
            self,
            logger_name: str = "jaxabl",
            logging_level: str = "INFO",
            jax_backend: str = None,
            ) -> None:

        self.logger_name = logger_name
        self.is_streamoutput = not logging_level.endswith("_TO_FILE")
        logging_level = logging_level.removesuffix("_TO_FILE")

        assert_string = (
            f"Logging level must be in {tuple(LEVELS.keys())}, "
            f"but is {logging_level}.")
        assert logging_level in LEVELS, assert_string
        self.logging_level = LEVELS[logging_level]

        self.run_information = {
            "PYTHON Version": python_version(),
            "JAX Version": jax_version.__version__,
            "JAXLIB Version": jaxlib_version.__version__,
            "JAX-ABL Version": jaxabl.__version__,
            "GIT Commit": get_git_sha(),
            "DATE & TIME": datetime.today().strftime('%Y-%m-%d %H:%M:%S'),
            "PROCESS ID": str(os.getpid()),
        }
        if jax_backend is not None:
            self.run_information["JAX BACKEND"] = jax_backend

        self.logger = logging.getLogger(self.logger_name)

    def configure_logger(self, log_path: str = None) -> None:
        """Installs the handlers. Existing handlers of
        the named logger are closed first. Only process 0
        writes to screen.

        :param log_path: Directory of output.log, defaults to None
        :type log_path: str, optional
        """
        logger = logging.getLogger(self.logger_name)
        self.logger = logger
        if logger.hasHandlers():
            self._shutdown_logger()
        logger.setLevel(self.logging_level)

        handlers = []
        if self.is_streamoutput and jax.process_index() == 0:
            handlers.append(logging.StreamHandler())
        if log_path is not None:
            handlers.append(logging.FileHandler(
                os.path.join(os.path.abspath(log_path), "output.log")))

        formatter = logging.Formatter('%(message)s')
        for handler in handlers:
            handler.setLevel(self.logging_level)
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    def log_sim_start(self) -> None:
        """Logs the banner and the run information."""
        self.hline()
        self.nline()
        self.log_centered("J A X - A B L")
        self.log_centered("planar statistics of the atmospheric boundary layer")
        self.nline()
        self.hline()
        self.nline()
        for key, value in self.run_information.items():
            self.log_centered(f"{key}: {value}")
        self.nline()
        self.hline()

    def log_sim_finish(self, end_time: float) -> None:
        """Logs the end of the run and closes
        the handlers.

        :param end_time: Final physical simulation time
        :type end_time: float
        """
        self.hline()
        self.nline()
        self.log_centered(f"SIMULATION FINISHED AT TIME {end_time:.3e}")
        self.nline()
        self.hline()
        self._shutdown_logger()

    def log_setup(self, setup_dict: Dict[str, object], name: str) -> None:
        """Logs a setup summary, one line per entry."""
        self.log_list([name] + [
            f"{key.upper():<27}= {value}" for key, value in setup_dict.items()])

    def log_list(self, input_list: List[str]) -> None:
        self.nline()
        for line in input_list:
            self.logger.info(f"*    {line:<{WIDTH-6}}*")
        self.nline()

    def log_centered(self, line: str) -> None:
        self.logger.info(f"*{line:^{WIDTH-2}}*")

    def hline(self) -> None:
        self.logger.info("*" + "-" * (WIDTH - 2) + "*")

    def nline(self) -> None:
        self.logger.info("*" + " " * (WIDTH - 2) + "*")

    def _shutdown_logger(self) -> None:
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)
