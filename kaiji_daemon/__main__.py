from kaiji_daemon.main import main

main()
