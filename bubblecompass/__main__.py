from bubblecompass.cli import main

raise SystemExit(main())
