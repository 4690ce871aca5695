from .setup.cli import main

raise SystemExit(main())
