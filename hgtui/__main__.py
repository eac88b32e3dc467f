from hgtui.app import main

raise SystemExit(main())
