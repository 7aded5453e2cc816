from authsvc.app import main

main()
