# main.py

import argparse
import sys

from PyQt5.QtWidgets import QApplication

from .config import configure_logging
from .mainwindow import MainWindow
from .memory_source import demo_cluster_group


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Interactive cluster graph visualizer (demo vault).")
    parser.add_argument("--debug", action="store_true", default=None, help="verbose logging")
    parser.add_argument("--seed", type=int, default=7, help="seed for the demo vault")
    parser.add_argument("--clusters", type=int, default=3, help="initial demo clusters")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.debug)

    app = QApplication(sys.argv[:1])

    group = demo_cluster_group(seed=args.seed, n_clusters=args.clusters)
    window = MainWindow(group, items_provider=lambda: group.items)
    window.resize(1200, 900)
    window.show()
    window.graphWidget.refresh()
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
