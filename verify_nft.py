from solnftcollection.cli import verify_nft_main

if __name__ == "__main__":
    verify_nft_main()
