from flowpad.main import main

raise SystemExit(main())
