"""
Basic usage - Upload a file with an access token
"""
import asyncio
import os
from driveupload import DriveClient


async def main():
    async with DriveClient(token=os.environ["DRIVEUPLOAD_TOKEN"]) as drive:

        # Simple upload to My Drive
        result = await drive.upload("document.pdf")
        print(f"Uploaded: {result.file_id} ({result.size} bytes, md5 {result.md5})")

        # Upload into a folder with a custom name
        result = await drive.upload("photo.jpg", filename="vacation_2024.jpg", folder_id="1eim7J...")
        print(f"Uploaded as: {result.file_id}")

        # Upload with progress callback
        def on_progress(progress):
            print(f"Progress: {progress.percentage:.1f}%")

        result = await drive.upload("large_file.zip", chunk_size=8 * 256 * 1024, progress_callback=on_progress)
        print(f"Uploaded: {result.to_dict()}")


if __name__ == "__main__":
    asyncio.run(main())
